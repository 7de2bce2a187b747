import json

import pytest

from platform_kernel import Collection


@pytest.fixture
def collection() -> Collection:
    return Collection(
        {"errcode": 0, "user": {"name": "foo", "tags": ["a", "b"]}, "total": 2}
    )


class TestCollection:
    def test_keyed_access(self, collection: Collection):
        assert collection["errcode"] == 0
        assert collection["user"]["name"] == "foo"

    def test_positional_access(self, collection: Collection):
        assert collection[0] == 0
        assert collection[-1] == 2

    def test_missing_key(self, collection: Collection):
        with pytest.raises(KeyError):
            collection["missing"]
        with pytest.raises(KeyError):
            collection[10]

    def test_dotted_get(self, collection: Collection):
        assert collection.get("user.name") == "foo"
        assert collection.get("user.tags.1") == "b"
        assert collection.get("user.age", 18) == 18
        assert collection.has("user.tags")
        assert not collection.has("user.age")

    def test_list_uses_indexes_as_keys(self):
        collection = Collection(["a", "b"])

        assert collection.to_dict() == {0: "a", 1: "b"}
        assert collection[1] == "b"

    def test_only_and_except(self, collection: Collection):
        assert collection.only("errcode", "missing") == {"errcode": 0}
        assert collection.except_("user") == {"errcode": 0, "total": 2}

    def test_first_and_last(self, collection: Collection):
        assert collection.first() == 0
        assert collection.last() == 2
        assert Collection().first("none") == "none"
        assert Collection().last("none") == "none"

    def test_mapping_protocol(self, collection: Collection):
        assert len(collection) == 3
        assert list(collection) == ["errcode", "user", "total"]
        assert "user" in collection
        assert dict(collection) == collection.to_dict()

    def test_to_json(self):
        assert json.loads(Collection({"name": "名字"}).to_json()) == {"name": "名字"}
        assert "名字" in Collection({"name": "名字"}).to_json()
