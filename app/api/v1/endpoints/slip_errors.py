from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException

from app.services.mail_relay import MailRelayFailure
from app.services.slip_document_service import SlipTemplateError
from app.services.slip_number_service import SlipNumberAllocationError
from app.services.slip_service import SlipNotFoundError, SlipValidationError

logger = logging.getLogger(__name__)


@contextmanager
def slip_errors() -> Iterator[None]:
    """Map slip service failures onto HTTP responses."""
    try:
        yield
    except SlipNumberAllocationError as exc:
        logger.warning("slip_number_unavailable error=%s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except SlipNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except SlipValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except MailRelayFailure as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc
    except SlipTemplateError as exc:
        logger.exception("slip_template_unavailable")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
