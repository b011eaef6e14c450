from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rentbot.commands import CommandRouter
from rentbot.commit import EntityCommitter
from rentbot.config import Settings, configure_logging, get_settings
from rentbot.engine import FlowEngine
from rentbot.graph import build_chat_graph, run_turn
from rentbot.ids import generate_tenant_id, generate_unique, generate_unit_id
from rentbot.llm import UNAVAILABLE_MESSAGE, ReplyGenerator
from rentbot.models import Contact, Property, RentInfo, Tenant, Unit
from rentbot.repository import EntityStore, InMemoryEntityStore
from rentbot.storage import FlowStateStore
from rentbot.transcript import TranscriptStore
from rentbot.whatsapp import WhatsAppClient, extract_message

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    entities: EntityStore
    flow_states: FlowStateStore
    engine: FlowEngine
    transcript: TranscriptStore
    responder: ReplyGenerator
    commands: CommandRouter
    whatsapp: WhatsAppClient
    graph: Any


def build_services(
    settings: Settings,
    *,
    entities: Optional[EntityStore] = None,
    transcript: Optional[TranscriptStore] = None,
    responder: Optional[ReplyGenerator] = None,
    whatsapp: Optional[WhatsAppClient] = None,
) -> Services:
    entities = entities if entities is not None else InMemoryEntityStore()
    flow_states = FlowStateStore()
    engine = FlowEngine(flow_states, EntityCommitter(entities))
    transcript = transcript or TranscriptStore(settings.redis_url, settings.transcript_max_messages)
    responder = responder or ReplyGenerator(
        settings.gemini_api_key,
        model=settings.gemini_model,
        temperature=settings.temperature,
        max_output_tokens=settings.max_output_tokens,
    )
    commands = CommandRouter(engine, entities, responder, page_size=settings.list_page_size)
    whatsapp = whatsapp or WhatsAppClient(settings.whatsapp_api_url, settings.whatsapp_api_token)
    graph = build_chat_graph(engine, commands, responder, transcript, history_limit=settings.history_limit)
    return Services(
        settings=settings,
        entities=entities,
        flow_states=flow_states,
        engine=engine,
        transcript=transcript,
        responder=responder,
        commands=commands,
        whatsapp=whatsapp,
        graph=graph,
    )


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    user_id: Optional[str] = None
    message: str = ""


class PropertyIn(_CamelModel):
    name: str = Field(min_length=2)
    address: str = Field(min_length=5)
    type: Literal["Apartment", "House", "Condo", "Commercial", "Other"]
    size: int = Field(gt=0)
    owner: Optional[str] = None


class UnitIn(_CamelModel):
    property: str
    floor: str = Field(min_length=1)
    rent: float = Field(gt=0)
    is_available: bool = True


class TenantIn(_CamelModel):
    unit: str
    name: str = Field(min_length=2)
    email: str = ""
    phone: str = ""
    move_in_date: date
    rent_amount: float = Field(gt=0)
    rent_due_date: int = Field(default=1, ge=1, le=31)


def create_app(services: Optional[Services] = None) -> FastAPI:
    services = services or build_services(get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting rental property bot")
        logger.info("LLM configured: %s, transcript backend: %s", services.responder.configured,
                    "redis" if services.settings.redis_url else "memory")
        yield
        services.whatsapp.close()
        logger.info("Shutting down rental property bot")

    app = FastAPI(title="Rental Property Bot", version="1.0.0", lifespan=lifespan)
    app.state.services = services

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # chat

    @app.post("/webhook")
    def webhook(req: ChatRequest):
        if not req.user_id:
            raise HTTPException(status_code=400, detail="userId is required")
        try:
            turn = run_turn(services.graph, req.user_id, req.message)
        except Exception:
            logger.exception("Error processing webhook for %s", req.user_id)
            return JSONResponse(status_code=500, content={"error": "Failed to process message"})
        return {"response": turn.reply}

    @app.get("/flows/{user_id}")
    def active_flow(user_id: str) -> dict[str, Any]:
        state = services.engine.active_flow(user_id)
        if state is None:
            raise HTTPException(status_code=404, detail="No active flow")
        return state.model_dump(mode="json")

    @app.get("/whatsapp/webhook")
    def whatsapp_verify(
        mode: Optional[str] = Query(default=None, alias="hub.mode"),
        token: Optional[str] = Query(default=None, alias="hub.verify_token"),
        challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    ):
        if not mode or not token:
            return Response(status_code=400)
        if mode == "subscribe" and token == services.settings.whatsapp_verify_token:
            logger.info("WhatsApp webhook verified")
            return PlainTextResponse(challenge or "")
        return Response(status_code=403)

    @app.post("/whatsapp/webhook")
    def whatsapp_webhook(payload: dict[str, Any] = Body(...)):
        if payload.get("object") != "whatsapp_business_account":
            return Response(status_code=404)
        inbound = extract_message(payload)
        if inbound is None or not inbound["from"]:
            return Response(status_code=200)

        try:
            reply = run_turn(services.graph, inbound["from"], inbound["text"]).reply
        except Exception:
            logger.exception("Error processing WhatsApp message from %s", inbound["from"])
            reply = UNAVAILABLE_MESSAGE
        services.whatsapp.send_message(inbound["from"], reply or UNAVAILABLE_MESSAGE)
        return Response(status_code=200)

    # properties

    @app.post("/api/property", status_code=201)
    def create_property(body: PropertyIn) -> dict[str, Any]:
        prop = Property(**body.model_dump())
        services.entities.create_property(prop)
        return prop.model_dump(mode="json")

    @app.get("/api/property")
    def list_properties(owner: Optional[str] = None) -> list[dict[str, Any]]:
        props = services.entities.list_properties(sort_by_name=False)
        return [p.model_dump(mode="json") for p in props if owner is None or p.owner == owner]

    @app.get("/api/property/{property_id}")
    def get_property(property_id: str) -> dict[str, Any]:
        prop = services.entities.get_property(property_id)
        if prop is None:
            raise HTTPException(status_code=404, detail="Property not found")
        return prop.model_dump(mode="json")

    # units

    @app.post("/api/unit", status_code=201)
    def create_unit(body: UnitIn) -> dict[str, Any]:
        if services.entities.get_property(body.property) is None:
            raise HTTPException(status_code=404, detail="Property not found")
        unit = Unit(
            unit_id=generate_unique(generate_unit_id, lambda c: services.entities.find_unit_by_identifier(c) is not None),
            property_id=body.property,
            floor=body.floor,
            rent=body.rent,
            is_available=body.is_available,
        )
        services.entities.create_unit(unit)
        return unit.model_dump(mode="json")

    @app.get("/api/unit")
    def list_units(property: Optional[str] = None) -> list[dict[str, Any]]:
        return [u.model_dump(mode="json") for u in services.entities.list_units(property)]

    @app.get("/api/unit/{unit_pk}")
    def get_unit(unit_pk: str) -> dict[str, Any]:
        unit = services.entities.get_unit(unit_pk) or services.entities.find_unit_by_identifier(unit_pk)
        if unit is None:
            raise HTTPException(status_code=404, detail="Unit not found")
        return unit.model_dump(mode="json")

    # tenants

    @app.post("/api/tenant", status_code=201)
    def create_tenant(body: TenantIn) -> dict[str, Any]:
        unit = services.entities.get_unit(body.unit) or services.entities.find_unit_by_identifier(body.unit)
        if unit is None:
            raise HTTPException(status_code=404, detail="Unit not found")
        tenant = Tenant(
            tenant_id=generate_unique(
                generate_tenant_id, lambda c: services.entities.find_tenant_by_identifier(c) is not None
            ),
            name=body.name,
            contact=Contact(email=body.email, phone=body.phone),
            unit=unit.id,
            move_in_date=body.move_in_date,
            rent_info=RentInfo(amount=body.rent_amount, due_date=body.rent_due_date),
        )
        services.entities.create_tenant(tenant)
        services.entities.update_unit_availability(unit.id, False)
        return tenant.model_dump(mode="json")

    @app.get("/api/tenant")
    def list_tenants() -> list[dict[str, Any]]:
        return [t.model_dump(mode="json") for t in services.entities.list_tenants()]

    @app.get("/api/tenant/{tenant_pk}")
    def get_tenant(tenant_pk: str) -> dict[str, Any]:
        tenant = services.entities.get_tenant(tenant_pk) or services.entities.find_tenant_by_identifier(tenant_pk)
        if tenant is None:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return tenant.model_dump(mode="json")

    return app


configure_logging()
app = create_app()
