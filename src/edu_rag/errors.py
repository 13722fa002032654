from __future__ import annotations

from typing import Optional

TRANSIENT_STATUS_CODES = frozenset({429, 503})


class EduRagError(Exception):
    """Base class for errors raised by the retrieval engine."""


class NotReadyError(EduRagError):
    """Knowledge base or generation service is not usable yet."""


class GenerationServiceError(EduRagError):
    """
    The generation service could not be reached or returned nothing usable.
    Connection failures and timeouts land here directly.
    """


class GenerationHTTPError(GenerationServiceError):
    """
    Non-2xx response from the generation service.
    retry_after is the server-supplied hint in seconds, if any.
    """

    def __init__(self, status_code: int, message: str = "", retry_after: Optional[float] = None) -> None:
        detail = f"generation service returned HTTP {status_code}"
        super().__init__(f"{detail}: {message}" if message else detail)
        self.status_code = status_code
        self.retry_after = retry_after

    @property
    def is_transient(self) -> bool:
        return self.status_code in TRANSIENT_STATUS_CODES


class StoreWriteError(EduRagError):
    """
    A document store write failed.
    `repaired` counts documents already written before the failure.
    """

    def __init__(self, document_id: Optional[str], cause: BaseException, repaired: int = 0) -> None:
        super().__init__(f"store write failed for document {document_id!r}: {type(cause).__name__}: {cause}")
        self.document_id = document_id
        self.repaired = repaired
