import sqlite3
from collections.abc import Callable, Collection, Sequence
from datetime import UTC, datetime
from typing import Any

from sitepublish.core.ports.workflow import TRIGGER_APPROVE, TRIGGER_ARCHIVE
from sitepublish.domain.entities import (
    ContentItem,
    ContentType,
    Edition,
    ItemDates,
    PublishTarget,
    ServerKind,
    Site,
    StateTransition,
    ValidityFlag,
    WorkflowItemView,
)
from sitepublish.domain.publish_types import edition_name_matches

LIVE_VALIDITY = ("y", "i")


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def format_dt(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def placeholders(values: Collection[Any]) -> str:
    return ", ".join("?" for _ in values)


class SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _write(self, sql: str, params: Sequence[Any] = ()) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.lastrowid or 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    def _fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            return conn.execute(sql, params).fetchone()
        finally:
            conn.close()


class SQLiteWorkflowView(SQLiteRepo):
    def __init__(self, db_path: str, live_state_name: str = "Live"):
        super().__init__(db_path)
        self.live_state_name = live_state_name

    def save_item(self, item: ContentItem) -> ContentItem:
        self._write(
            """
            INSERT INTO content_items (
                id, name, revision, public_revision, validity, asset_class,
                content_type_id, folder_id, scheduled_start, scheduled_end, recycled
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                revision=excluded.revision,
                public_revision=excluded.public_revision,
                validity=excluded.validity,
                asset_class=excluded.asset_class,
                content_type_id=excluded.content_type_id,
                folder_id=excluded.folder_id,
                scheduled_start=excluded.scheduled_start,
                scheduled_end=excluded.scheduled_end,
                recycled=excluded.recycled
        """,
            (
                item.id,
                item.name,
                item.revision,
                item.public_revision,
                item.validity.value,
                item.asset_class,
                item.content_type_id,
                item.folder_id,
                format_dt(item.scheduled_start),
                format_dt(item.scheduled_end),
                int(item.recycled),
            ),
        )
        return item

    def get_item(self, content_id: int) -> ContentItem | None:
        row = self._fetch_one("SELECT * FROM content_items WHERE id = ?", (content_id,))
        if not row:
            return None
        return ContentItem(
            id=row["id"],
            name=row["name"],
            revision=row["revision"],
            public_revision=row["public_revision"],
            validity=ValidityFlag(row["validity"]),
            asset_class=row["asset_class"],
            content_type_id=row["content_type_id"],
            folder_id=row["folder_id"],
            scheduled_start=parse_dt(row["scheduled_start"]),
            scheduled_end=parse_dt(row["scheduled_end"]),
            recycled=bool(row["recycled"]),
        )

    def add_transition(self, transition: StateTransition) -> None:
        self._write(
            """
            INSERT INTO state_transitions
            (content_id, revision, from_state, to_state, occurred_at)
            VALUES (?, ?, ?, ?, ?)
        """,
            (
                transition.content_id,
                transition.revision,
                transition.from_state,
                transition.to_state,
                transition.occurred_at.isoformat(),
            ),
        )

    def restrict_folder(self, folder_id: int, site_ids: Sequence[int]) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM folder_sites WHERE folder_id = ?", (folder_id,))
            for site_id in site_ids:
                conn.execute(
                    "INSERT INTO folder_sites (folder_id, site_id) VALUES (?, ?)",
                    (folder_id, site_id),
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def enable_trigger(self, content_id: int, trigger: str) -> None:
        self._write(
            "INSERT OR IGNORE INTO workflow_triggers (content_id, trigger_name) VALUES (?, ?)",
            (content_id, trigger),
        )

    def find_workflow_item(self, content_id: int) -> WorkflowItemView | None:
        item = self.get_item(content_id)
        if item is None:
            return None

        allowed = None
        if item.folder_id is not None:
            rows = self._fetch_all(
                "SELECT site_id FROM folder_sites WHERE folder_id = ?", (item.folder_id,)
            )
            if rows:
                allowed = frozenset(r["site_id"] for r in rows)

        return WorkflowItemView(
            content_id=item.id,
            asset_class=item.asset_class,
            publishable=item.validity.is_live,
            public_revision=item.public_revision,
            scheduled_start=item.scheduled_start,
            recycled=item.recycled,
            allowed_site_ids=allowed,
        )

    def find_state_history(self, content_id: int) -> list[StateTransition]:
        rows = self._fetch_all(
            "SELECT * FROM state_transitions WHERE content_id = ? ORDER BY occurred_at ASC, id ASC",
            (content_id,),
        )
        return [
            StateTransition(
                content_id=r["content_id"],
                revision=r["revision"],
                from_state=r["from_state"],
                to_state=r["to_state"],
                occurred_at=datetime.fromisoformat(r["occurred_at"]),
            )
            for r in rows
        ]

    def get_item_dates(self, content_id: int) -> ItemDates:
        row = self._fetch_one(
            "SELECT scheduled_start, scheduled_end FROM content_items WHERE id = ?", (content_id,)
        )
        if not row:
            return ItemDates()
        return ItemDates(
            start_date=parse_dt(row["scheduled_start"]), end_date=parse_dt(row["scheduled_end"])
        )

    def clear_start_date(self, content_ids: list[int]) -> None:
        if content_ids:
            self._write(
                f"UPDATE content_items SET scheduled_start = NULL WHERE id IN ({placeholders(content_ids)})",
                content_ids,
            )

    def clear_expiry_date(self, content_ids: list[int]) -> None:
        if content_ids:
            self._write(
                f"UPDATE content_items SET scheduled_end = NULL WHERE id IN ({placeholders(content_ids)})",
                content_ids,
            )

    def is_trigger_available(self, content_id: int, trigger: str) -> bool:
        row = self._fetch_one(
            "SELECT 1 AS found FROM workflow_triggers WHERE content_id = ? AND trigger_name = ?",
            (content_id, trigger),
        )
        return row is not None

    def perform_approve_transition(self, content_id: int) -> None:
        self._transition(content_id, "y", self.live_state_name, TRIGGER_APPROVE, publish=True)

    def perform_archive_transition(self, content_id: int) -> None:
        self._transition(content_id, "u", "Archive", TRIGGER_ARCHIVE, publish=False)

    def check_in(self, content_id: int) -> None:
        # Revisions are always checked in for this store
        return None

    def _transition(
        self, content_id: int, validity: str, to_state: str, trigger: str, publish: bool
    ) -> None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT revision, validity FROM content_items WHERE id = ?", (content_id,)
            ).fetchone()
            if not row:
                return
            if publish:
                conn.execute(
                    "UPDATE content_items SET validity = ?, public_revision = revision WHERE id = ?",
                    (validity, content_id),
                )
            else:
                conn.execute(
                    "UPDATE content_items SET validity = ? WHERE id = ?", (validity, content_id)
                )
            conn.execute(
                """
                INSERT INTO state_transitions
                (content_id, revision, from_state, to_state, occurred_at)
                VALUES (?, ?, ?, ?, ?)
            """,
                (content_id, row["revision"], row["validity"], to_state, datetime.now(UTC).isoformat()),
            )
            conn.execute(
                "DELETE FROM workflow_triggers WHERE content_id = ? AND trigger_name = ?",
                (content_id, trigger),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


class SQLiteRelationshipGraph(SQLiteRepo):
    def add_edge(self, owner_id: int, dependent_id: int, kind: str = "shared") -> None:
        self._write(
            "INSERT OR IGNORE INTO relationships (owner_id, dependent_id, kind) VALUES (?, ?, ?)",
            (owner_id, dependent_id, kind),
        )

    def find_direct_dependents(
        self,
        owner_ids: Sequence[int],
        content_type_ids: Collection[int],
        unapproved_only: bool = False,
    ) -> set[int]:
        if not owner_ids or not content_type_ids:
            return set()
        type_ids = list(content_type_ids)
        sql = f"""
            SELECT DISTINCT r.dependent_id
            FROM relationships r
            JOIN content_items c ON c.id = r.dependent_id
            WHERE r.owner_id IN ({placeholders(owner_ids)})
              AND c.content_type_id IN ({placeholders(type_ids)})
        """
        params: list[Any] = [*owner_ids, *type_ids]
        if unapproved_only:
            sql += f" AND c.validity NOT IN ({placeholders(LIVE_VALIDITY)})"
            params.extend(LIVE_VALIDITY)
        return {row["dependent_id"] for row in self._fetch_all(sql, params)}

    def find_resource_assets(self, content_id: int) -> set[int]:
        rows = self._fetch_all(
            """
            SELECT DISTINCT r.dependent_id
            FROM relationships r
            JOIN content_items c ON c.id = r.dependent_id
            WHERE r.owner_id = ? AND c.asset_class = 'shared'
        """,
            (content_id,),
        )
        return {row["dependent_id"] for row in rows}


class SQLiteContentTypeCatalog(SQLiteRepo):
    def save(self, content_type: ContentType) -> ContentType:
        self._write(
            """
            INSERT INTO content_types (id, name, publishable, is_binary)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                publishable=excluded.publishable,
                is_binary=excluded.is_binary
        """,
            (
                content_type.id,
                content_type.name,
                int(content_type.publishable),
                int(content_type.binary),
            ),
        )
        return content_type

    def list_content_types(self) -> list[ContentType]:
        rows = self._fetch_all("SELECT * FROM content_types ORDER BY id")
        return [
            ContentType(
                id=r["id"],
                name=r["name"],
                publishable=bool(r["publishable"]),
                binary=bool(r["is_binary"]),
            )
            for r in rows
        ]


ConnectivityCheck = Callable[[PublishTarget], bool]


class SQLiteTargetRegistry(SQLiteRepo):
    _TARGET_SQL = """
        SELECT ps.*, s.name AS site_name
        FROM publish_servers ps
        JOIN sites s ON s.id = ps.site_id
    """

    def __init__(self, db_path: str, reachable: ConnectivityCheck | None = None):
        super().__init__(db_path)
        self._reachable = reachable

    def save_site(self, site: Site) -> Site:
        self._write(
            "INSERT INTO sites (id, name) VALUES (?, ?) ON CONFLICT(id) DO UPDATE SET name=excluded.name",
            (site.id, site.name),
        )
        return site

    def save_target(self, target: PublishTarget, is_default: bool = False) -> PublishTarget:
        self._write(
            """
            INSERT INTO publish_servers (
                id, site_id, name, kind, is_default, can_incremental_publish,
                is_full_publish_required, publish_related, host, port
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                site_id=excluded.site_id,
                name=excluded.name,
                kind=excluded.kind,
                is_default=excluded.is_default,
                can_incremental_publish=excluded.can_incremental_publish,
                is_full_publish_required=excluded.is_full_publish_required,
                publish_related=excluded.publish_related,
                host=excluded.host,
                port=excluded.port
        """,
            (
                target.server_id,
                target.site_id,
                target.server_name,
                target.server_kind.value,
                int(is_default),
                int(target.can_incremental_publish),
                int(target.is_full_publish_required),
                int(target.publish_related),
                target.host,
                target.port,
            ),
        )
        return target

    def assign_item(self, content_id: int, *site_ids: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM item_sites WHERE content_id = ?", (content_id,))
            for position, site_id in enumerate(site_ids):
                conn.execute(
                    "INSERT INTO item_sites (content_id, site_id, position) VALUES (?, ?, ?)",
                    (content_id, site_id, position),
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def find_site(self, site_name: str) -> Site | None:
        row = self._fetch_one("SELECT * FROM sites WHERE name = ?", (site_name,))
        return Site(id=row["id"], name=row["name"]) if row else None

    def list_sites(self) -> list[Site]:
        return [Site(id=r["id"], name=r["name"]) for r in self._fetch_all("SELECT * FROM sites ORDER BY id")]

    def item_sites(self, content_id: int) -> list[Site]:
        rows = self._fetch_all(
            """
            SELECT s.* FROM item_sites i
            JOIN sites s ON s.id = i.site_id
            WHERE i.content_id = ?
            ORDER BY i.position, s.id
        """,
            (content_id,),
        )
        return [Site(id=r["id"], name=r["name"]) for r in rows]

    def site_content(self, site_id: int) -> list[int]:
        rows = self._fetch_all(
            "SELECT content_id FROM item_sites WHERE site_id = ? ORDER BY content_id",
            (site_id,),
        )
        return [r["content_id"] for r in rows]

    def find_target(self, site_name: str, server_name: str) -> PublishTarget | None:
        row = self._fetch_one(
            self._TARGET_SQL + " WHERE s.name = ? AND lower(ps.name) = lower(?)",
            (site_name, server_name),
        )
        return self._map_row(row) if row else None

    def default_target(self, site_id: int) -> PublishTarget | None:
        row = self._fetch_one(
            self._TARGET_SQL
            + " WHERE ps.site_id = ? AND ps.kind != 'staging' ORDER BY ps.is_default DESC, ps.id",
            (site_id,),
        )
        return self._map_row(row) if row else None

    def staging_target(self, site_id: int) -> PublishTarget | None:
        row = self._fetch_one(
            self._TARGET_SQL
            + " WHERE ps.site_id = ? AND ps.kind = 'staging' ORDER BY ps.is_default DESC, ps.id",
            (site_id,),
        )
        return self._map_row(row) if row else None

    def check_connectivity(self, target: PublishTarget) -> bool:
        if self._reachable is None:
            return True
        return self._reachable(target)

    def clear_full_publish_required(self, target: PublishTarget) -> None:
        self._write(
            "UPDATE publish_servers SET is_full_publish_required = 0 WHERE id = ?",
            (target.server_id,),
        )

    def _map_row(self, row: dict[str, Any]) -> PublishTarget:
        return PublishTarget(
            site_id=row["site_id"],
            site_name=row["site_name"],
            server_id=row["id"],
            server_name=row["name"],
            server_kind=ServerKind(row["kind"]),
            can_incremental_publish=bool(row["can_incremental_publish"]),
            is_full_publish_required=bool(row["is_full_publish_required"]),
            publish_related=bool(row["publish_related"]),
            host=row["host"],
            port=row["port"],
        )


class SQLiteEditionRegistry(SQLiteRepo):
    def save(self, edition: Edition) -> Edition:
        self._write(
            """
            INSERT INTO editions (id, name, site_id, server_id, suffix)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                site_id=excluded.site_id,
                server_id=excluded.server_id,
                suffix=excluded.suffix
        """,
            (edition.id, edition.name, edition.site_id, edition.server_id, edition.suffix),
        )
        return edition

    def find_edition(self, target: PublishTarget, suffix: str) -> Edition | None:
        rows = self._fetch_all(
            "SELECT * FROM editions WHERE site_id = ? AND server_id = ? ORDER BY id",
            (target.site_id, target.server_id),
        )
        return self._first_match(rows, suffix)

    def find_site_edition(self, site: Site, suffix: str) -> Edition | None:
        rows = self._fetch_all("SELECT * FROM editions WHERE site_id = ? ORDER BY id", (site.id,))
        return self._first_match(rows, suffix)

    def create_on_demand_edition(self, site: Site, suffix: str) -> Edition:
        name = f"{site.name}_{suffix}"
        edition_id = self._write(
            "INSERT INTO editions (name, site_id, suffix) VALUES (?, ?, ?)",
            (name, site.id, suffix),
        )
        return Edition(id=edition_id, name=name, site_id=site.id, suffix=suffix)

    def _first_match(self, rows: list[dict[str, Any]], suffix: str) -> Edition | None:
        for r in rows:
            if edition_name_matches(r["name"], suffix):
                return Edition(
                    id=r["id"],
                    name=r["name"],
                    site_id=r["site_id"],
                    server_id=r["server_id"],
                    suffix=r["suffix"],
                )
        return None


class SQLiteContentChanges(SQLiteRepo):
    def mark_changed(self, site_id: int, content_id: int, staged: bool = False) -> None:
        self._write(
            "INSERT OR IGNORE INTO content_changes (site_id, content_id, staged) VALUES (?, ?, ?)",
            (site_id, content_id, int(staged)),
        )

    def get_changed_content(self, site_id: int, staged: bool = False) -> list[int]:
        rows = self._fetch_all(
            """
            SELECT content_id FROM content_changes
            WHERE site_id = ? AND staged = ?
            ORDER BY changed_at, content_id
        """,
            (site_id, int(staged)),
        )
        return [r["content_id"] for r in rows]
