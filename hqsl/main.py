"""HTTP and MCP service for parsing, converting and verifying HQSL cards.

``create_app`` builds the FastAPI application, registers middleware and
REST endpoints, and mounts an MCP server exposing the same operations. The
module-level ``app`` lets ASGI servers like Uvicorn find it directly.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from fastapi_mcp import FastApiMCP

from . import config
from .adapters import openpgp
from .adapters.adif import to_adif
from .codec import from_string, to_string
from .errors import CardSyntaxError, KeyNotFoundError, RangeError
from .middleware import RequestLogMiddleware
from .models import (
    Card,
    CardRecord,
    CardTextRequest,
    CertificationRecord,
    FrequencyBand,
    KeyCertifications,
    VerificationRecord,
)
from .utils.frequency import freq_band, normalize_freq
from .verifier import HQSLVerifier


def card_record(card: Card) -> CardRecord:
    """Flatten a parsed card for JSON output."""
    try:
        text = to_string(card)
    except CardSyntaxError:
        text = None
    return CardRecord(
        text=text,
        from_call=card.from_,
        where=card.where,
        to=card.to,
        when=card.when.isoformat(),
        display_date=card.display_date,
        signal=card.signal or None,
        freq=card.freq,
        band=card.band,
        mode=card.mode,
        extra=card.extra or None,
        reserved=card.reserved or None,
        signed=bool(card.signature),
    )


def _parse_card(text: str) -> Card:
    try:
        return from_string(text)
    except CardSyntaxError as e:
        raise HTTPException(status_code=400, detail=f"Malformed card: {e}")


def default_verifier() -> HQSLVerifier:
    """Verifier configured from the environment."""
    return HQSLVerifier.setup(
        config.trusted_keys(),
        key_servers=config.keyservers(),
        timeout=config.keyserver_timeout(),
    )


def create_app(verifier: Optional[HQSLVerifier] = None) -> FastAPI:
    """Factory function for constructing the FastAPI application.

    Args:
        verifier: Verifier to use; built from the environment if omitted.
    """
    app = FastAPI(title="HQSL")
    app.state.verifier = verifier or default_verifier()

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLogMiddleware)

    # -----------------------------------------------------------------------
    # API key dependency
    # -----------------------------------------------------------------------
    api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)

    def require_api_key(x_api_key: str = Depends(api_key_header)) -> None:
        """Validate the ``x-api-key`` header against ``API_KEY``, when set."""
        expected = config.api_key()
        if expected and x_api_key != expected:
            raise HTTPException(status_code=401, detail="Missing or invalid API key")

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    @app.get("/api")
    def api_root():
        """Return a simple service descriptor for programmatic clients."""
        return {
            "ok": True,
            "service": "HQSL",
            "docs": "/docs",
            "health": "/health",
            "mcp": "/mcp",
        }

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"ok": True}

    @app.post(
        "/api/cards/parse",
        operation_id="card_parse",
        tags=["Cards"],
        dependencies=[Depends(require_api_key)],
    )
    async def rest_card_parse(body: CardTextRequest) -> JSONResponse:
        """Parse card text and return its fields.

        Only syntax is checked here; use ``/api/cards/verify`` for the
        signature. Malformed cards give a 400 error.
        """
        card = _parse_card(body.card)
        return JSONResponse({"record": card_record(card).model_dump()})

    @app.post(
        "/api/cards/verify",
        operation_id="card_verify",
        tags=["Cards"],
        dependencies=[Depends(require_api_key)],
    )
    async def rest_card_verify(body: CardTextRequest) -> JSONResponse:
        """Verify a signed card against the trusted keys.

        The verdict is one of NOT_SIGNED, VALID, INVALID, KEY_NOT_FOUND and
        KEY_NOT_CERTIFIED, with the fingerprints of the keys involved.
        """
        card = _parse_card(body.card)
        result = await app.state.verifier.verify(card)
        record = VerificationRecord(
            verdict=result.verdict.name,
            code=int(result.verdict),
            signer=openpgp.fingerprint(result.signer_key) if result.signer_key else None,
            certifier=(
                openpgp.fingerprint(result.certifier_key) if result.certifier_key else None
            ),
            card=card_record(card),
        )
        return JSONResponse({"record": record.model_dump()})

    @app.post(
        "/api/cards/adif",
        operation_id="card_to_adif",
        tags=["Cards"],
        dependencies=[Depends(require_api_key)],
    )
    async def rest_card_adif(body: CardTextRequest) -> JSONResponse:
        """Convert card text to a single-QSO ADIF (ADI) document."""
        card = _parse_card(body.card)
        try:
            adif = to_adif(card)
        except CardSyntaxError as e:
            raise HTTPException(status_code=400, detail=f"Incomplete card: {e}")
        return JSONResponse({"adif": adif})

    # -----------------------------------------------------------------------
    # Band Routes
    # -----------------------------------------------------------------------
    @app.get(
        "/api/bands/frequency/{frequency}",
        operation_id="band_at_frequency",
        tags=["Bands"],
    )
    async def rest_band_at_frequency(frequency: float) -> JSONResponse:
        """Classify a frequency in MHz into an ADIF band.

        Also returns the frequency in the normalized form used on cards.
        """
        try:
            normalized = normalize_freq(frequency)
        except RangeError as e:
            raise HTTPException(status_code=400, detail=str(e))
        info = FrequencyBand(frequency=normalized, band=freq_band(frequency))
        return JSONResponse({"record": info.model_dump()})

    # -----------------------------------------------------------------------
    # Key Routes
    # -----------------------------------------------------------------------
    @app.get(
        "/api/keys/{query}/certifications",
        operation_id="key_certifications",
        tags=["Keys"],
    )
    async def rest_key_certifications(query: str) -> JSONResponse:
        """List what each key matching ``query`` is certified for.

        The query goes to the key servers as is; use ``0x`` followed by a
        key id or fingerprint to search by key. Returns 404 when no server
        has a match.
        """
        verifier = app.state.verifier
        try:
            keys = await verifier.lookup(query)
        except KeyNotFoundError:
            raise HTTPException(status_code=404, detail="Key not found")

        records = []
        for key in keys:
            ranges = verifier.certifications(key)
            records.append(
                KeyCertifications(
                    fingerprint=openpgp.fingerprint(key),
                    certifications=[
                        CertificationRecord(
                            call=r.call,
                            start=r.start.isoformat(),
                            end=r.end.isoformat(),
                            certifier=openpgp.fingerprint(r.key),
                        )
                        for r in ranges
                    ],
                ).model_dump()
            )
        return JSONResponse({"records": records})

    # -----------------------------------------------------------------------
    # MCP server
    # -----------------------------------------------------------------------
    mcp = FastApiMCP(
        app,
        include_operations=[
            "card_parse",
            "card_verify",
            "card_to_adif",
            "band_at_frequency",
            "key_certifications",
        ],
    )
    mcp.mount()

    return app


# Expose a module-level application instance for ASGI servers.
app = create_app()
