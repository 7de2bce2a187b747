import re
import socket
from datetime import datetime, timezone
from typing import Callable, Optional

from httpx import Headers, Request, RequestNotRead, Response, ResponseNotRead


def _render_headers(headers: Headers) -> str:
    return "\r\n".join(f"{name}: {value}" for name, value in headers.multi_items())


def _request_body(request: Request) -> str:
    try:
        return request.content.decode("utf-8", errors="replace")
    except RequestNotRead:
        return ""


def _response_body(response: Response) -> str:
    try:
        return response.text
    except ResponseNotRead:
        return ""


def _target(request: Request) -> str:
    return request.url.raw_path.decode("ascii")


class MessageFormatter:
    """Formats a request/response pair with a ``{placeholder}`` template.

    Available placeholders:

    - ``{request}`` / ``{response}``: full HTTP messages
    - ``{req_headers}`` / ``{res_headers}``, ``{req_body}`` / ``{res_body}``
    - ``{req_header_<name>}`` / ``{res_header_<name>}``: a single header
    - ``{ts}`` / ``{date_iso_8601}``, ``{date_common_log}``
    - ``{method}``, ``{uri}`` / ``{url}``, ``{target}``, ``{version}``
    - ``{host}``, ``{hostname}``
    - ``{code}``, ``{phrase}``, ``{error}``
    """

    CLF = (
        '{hostname} {req_header_User-Agent} - [{date_common_log}] '
        '"{method} {target} HTTP/{version}" {code} {res_header_Content-Length}'
    )
    DEBUG = ">>>>>>>>\n{request}\n<<<<<<<<\n{response}\n--------\n{error}"
    SHORT = '[{ts}] "{method} {target} HTTP/{version}" {code}'

    _PLACEHOLDER = re.compile(r"{\s*([A-Za-z0-9_.\-]+)\s*}")

    def __init__(self, template: Optional[str] = None) -> None:
        self.template = template or self.DEBUG

    def format(
        self,
        request: Request,
        response: Optional[Response] = None,
        error: Optional[BaseException] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        cache: dict[str, str] = {}

        def replace(match: "re.Match[str]") -> str:
            name = match.group(1)
            if name not in cache:
                cache[name] = self._placeholder(name, request, response, error, now)
            return cache[name]

        return self._PLACEHOLDER.sub(replace, self.template)

    def _placeholder(
        self,
        name: str,
        request: Request,
        response: Optional[Response],
        error: Optional[BaseException],
        now: datetime,
    ) -> str:
        version = response.http_version.removeprefix("HTTP/") if response else "1.1"

        if name.startswith("req_header_"):
            return request.headers.get(name[len("req_header_") :], "")
        if name.startswith("res_header_"):
            if response is None:
                return "NULL"
            return response.headers.get(name[len("res_header_") :], "")

        resolvers: dict[str, Callable[[], str]] = {
            "request": lambda: (
                f"{request.method} {_target(request)} HTTP/{version}\r\n"
                f"{_render_headers(request.headers)}\r\n\r\n{_request_body(request)}"
            ),
            "response": lambda: (
                f"HTTP/{version} {response.status_code} {response.reason_phrase}\r\n"
                f"{_render_headers(response.headers)}\r\n\r\n{_response_body(response)}"
                if response is not None
                else ""
            ),
            "req_headers": lambda: (
                f"{request.method} {_target(request)} HTTP/{version}\r\n"
                f"{_render_headers(request.headers)}"
            ),
            "res_headers": lambda: (
                f"HTTP/{version} {response.status_code} {response.reason_phrase}\r\n"
                f"{_render_headers(response.headers)}"
                if response is not None
                else "NULL"
            ),
            "req_body": lambda: _request_body(request),
            "res_body": lambda: _response_body(response) if response is not None else "NULL",
            "ts": lambda: now.isoformat(),
            "date_iso_8601": lambda: now.isoformat(),
            "date_common_log": lambda: now.strftime("%d/%b/%Y:%H:%M:%S %z"),
            "method": lambda: request.method,
            "version": lambda: version,
            "uri": lambda: str(request.url),
            "url": lambda: str(request.url),
            "target": lambda: _target(request),
            "host": lambda: request.url.host,
            "hostname": socket.gethostname,
            "code": lambda: str(response.status_code) if response is not None else "NULL",
            "phrase": lambda: response.reason_phrase if response is not None else "",
            "error": lambda: str(error) if error is not None else "NULL",
        }
        resolver = resolvers.get(name)
        return resolver() if resolver is not None else ""
