from __future__ import annotations

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base for every failure that is reported to the client as structured JSON."""

    kind = "relay_error"
    status_code = 500

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: Dict[str, Any] = detail

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "kind": self.kind}
        payload.update(self.detail)
        return payload


class ValidationError(RelayError):
    kind = "validation_error"
    status_code = 400


class ConfigurationError(RelayError):
    kind = "configuration_error"


class GatewayError(RelayError):
    kind = "gateway_error"

    def __init__(self, message: str, *, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message, status=status, detail=body)
        self.status = status
        self.body = body


class ExtractionError(RelayError):
    kind = "extraction_error"


class NoJsonFound(ExtractionError):
    def __init__(self, raw: str) -> None:
        super().__init__("no json in response", raw=raw)
        self.raw = raw


class ParseError(RelayError):
    kind = "parse_error"


class MalformedJson(ParseError):
    def __init__(self, extracted: str, raw: str, reason: str = "") -> None:
        super().__init__("json parse failed", extracted=extracted, raw=raw, reason=reason)
        self.extracted = extracted
        self.raw = raw


class SemanticError(RelayError):
    kind = "semantic_error"


class InvalidCoordinates(SemanticError):
    def __init__(self, raw: Any) -> None:
        super().__init__("invalid lat/lng", raw=raw)


class NotAnObject(SemanticError):
    def __init__(self, raw: Any) -> None:
        super().__init__("polygon spec must be a JSON object", raw=raw)


class InvalidPolygonSpec(SemanticError):
    def __init__(self, reason: str, raw: Any) -> None:
        super().__init__("invalid polygon spec", reason=reason, raw=raw)
