"""
Supabase Realtime relay

Listens to postgres_changes on the scoring tables and republishes them
through the EventPublisher, so writes made by other processes (or directly
in the Supabase dashboard) reach websocket clients too.
"""
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from supabase import acreate_client, AsyncClient

from topaz.config import supabase_config, Tables
from topaz.models import ChangeType
from .events import EventPublisher, ChangeEvent


WATCHED_TABLES = [
    Tables.SCORES,
    Tables.ENTRIES,
    Tables.COMPETITIONS,
    Tables.ADMIN_FILTERS,
    Tables.MEDAL_AWARDS,
]


def payload_to_event(
    payload: Dict[str, Any],
    owners: Optional[Dict[Tuple[str, Any], str]] = None
) -> Optional[ChangeEvent]:
    """
    Convert a postgres_changes payload into a ChangeEvent

    Accepts both the wrapped form ({"data": {"type", "table", "record",
    "old_record"}}) and the flat form ({"eventType", "table", "new", "old"}).

    DELETE payloads only carry the primary key unless the table uses
    REPLICA IDENTITY FULL. ``owners`` maps (table, row id) to the competition
    seen on earlier inserts and updates so those deletes can still be routed.
    """
    data = payload.get("data", payload) if isinstance(payload, dict) else {}

    table = data.get("table")
    change = data.get("type") or data.get("eventType")
    if not table or change not in ChangeType.__members__:
        logger.warning(f"Ignoring realtime payload: {payload}")
        return None

    new = data.get("record") or data.get("new") or None
    old = data.get("old_record") or data.get("old") or None

    row = new or old or {}
    if table == Tables.COMPETITIONS:
        competition_id = row.get("id")
    else:
        competition_id = row.get("competition_id")

    if owners is not None and row.get("id") is not None:
        key = (table, row["id"])
        if competition_id is None:
            competition_id = owners.get(key)
        if change == ChangeType.DELETE.value:
            owners.pop(key, None)
        elif competition_id is not None:
            owners[key] = competition_id

    return ChangeEvent(
        table=table,
        change_type=ChangeType(change),
        competition_id=competition_id,
        new=new,
        old=old,
        source="supabase",
    )


class SupabaseChangeFeed:
    """Relay Supabase postgres_changes into the local publisher"""

    def __init__(self, publisher: EventPublisher, tables: List[str] = None):
        self.publisher = publisher
        self.tables = tables or WATCHED_TABLES
        self.client: Optional[AsyncClient] = None
        self.channel = None
        self.owners: Dict[Tuple[str, Any], str] = {}

    def handle_payload(self, payload: Dict[str, Any]) -> None:
        event = payload_to_event(payload, self.owners)
        if event:
            self.publisher.publish(event)

    async def start(self) -> None:
        if not supabase_config.supabase_url or not supabase_config.supabase_key:
            raise ValueError("Set the SUPABASE_URL and SUPABASE_KEY environment variables")

        self.client = await acreate_client(
            supabase_config.supabase_url,
            supabase_config.supabase_key
        )
        self.channel = self.client.channel("topaz-scoring-changes")

        for table in self.tables:
            self.channel.on_postgres_changes(
                "*",
                schema="public",
                table=table,
                callback=self.handle_payload,
            )

        await self.channel.subscribe()
        self.publisher.relay_active = True
        logger.info(f"Supabase change feed subscribed: {', '.join(self.tables)}")

    async def stop(self) -> None:
        self.publisher.relay_active = False
        if self.client and self.channel:
            await self.client.remove_channel(self.channel)
            logger.info("Supabase change feed stopped")
        self.channel = None
