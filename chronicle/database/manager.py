#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the Chronicle canvas system.

Provides the ChronicleDB class, the single entry point to the database.
Handles:
    - Initialization of the database engine and sessionmaker
    - Transactional session scopes with per-session entity managers
    - Schema creation and migration management via Alembic
    - Canvas export, import and copy-from-share
    - Timeline and Gallery feeds

Core Operations:
    Entity Management (inside session_scope):
        - db.canvases: create/rename/delete canvases, membership
        - db.items: items, with cascading delete
        - db.links: undirected item links
        - db.notes: notes with history and mention links
        - db.tags: tags and tag assignments
        - db.photos: photo metadata and bytes
        - db.shares: share tokens

    Archives:
        - export_canvas: canvas -> archive bytes
        - import_canvas: archive bytes -> new canvas for a user
        - copy_shared_canvas: share token -> new canvas for a user

    Feeds:
        - list_timeline, list_gallery, timeline_day_counts

Notes
==============
- SQLite foreign keys are switched on for every connection, so ON DELETE
  CASCADE / SET NULL rules apply.
- Imports run on a SERIALIZABLE session of their own.
- Fresh databases are created from the ORM metadata and stamped at the
  Alembic head; existing databases are upgraded.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

# --- Third party ---
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import Engine, create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# --- Local imports ---
from chronicle.core.attachment_store import FileAttachmentStore
from chronicle.core.exceptions import AttachmentError, DatabaseError
from chronicle.core.logging_manager import ChronicleLogger, safe_logger
from chronicle.core.paths import ALEMBIC_DIR, ALEMBIC_INI, UPLOADS_DIR

from .decorators import handle_db_errors, log_database_operation
from .export_manager import ExportManager
from .feed_manager import FeedManager, FeedPage
from .id_remapper import IdFactory
from .import_manager import ImportManager, ImportResult
from .managers import (
    CanvasManager,
    ItemManager,
    LinkManager,
    NoteManager,
    PhotoManager,
    ShareManager,
    TagManager,
)
from .models import Base


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


# ----- Main Database Manager -----
class ChronicleDB:
    """
    Main database manager for the Chronicle database.

    Attributes:
        db_url (str): SQLAlchemy URL of the database
        alembic_dir (Path): Directory holding the Alembic migrations
        store (FileAttachmentStore): Attachment store for photo bytes
        engine (Engine): SQLAlchemy engine instance
        SessionLocal (sessionmaker): SQLAlchemy session factory

    Usage:
        db = ChronicleDB("~/chronicle/chronicle.db")
        with db.session_scope():
            canvas = db.canvases.create({"name": "Campaign"}, user_id="u1")

        data = db.export_canvas(canvas.id)
        copy = db.import_canvas(data, user_id="u2")
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        alembic_dir: Optional[Union[str, Path]] = None,
        log_dir: Optional[Union[str, Path]] = None,
        uploads_dir: Optional[Union[str, Path]] = None,
        db_url: Optional[str] = None,
        id_factory: Optional[IdFactory] = None,
        auto_init: bool = True,
    ) -> None:
        """
        Initialize database engine, session factory and services.

        Args:
            db_path: Path to an SQLite file (ignored when db_url is given)
            alembic_dir: Alembic migrations directory (default: ALEMBIC_DIR)
            log_dir: Directory for log files (optional)
            uploads_dir: Attachment store root (default: UPLOADS_DIR)
            db_url: Any SQLAlchemy URL, e.g. a PostgreSQL DSN
            id_factory: Source of fresh ids for imports (default: UUID4)
            auto_init: Create or upgrade the schema on startup

        Raises:
            DatabaseError: If neither db_path nor db_url is given, or the
                engine cannot be set up
        """
        if db_url is None and db_path is None:
            raise DatabaseError("Either db_path or db_url is required")

        self.db_path = Path(db_path).expanduser().resolve() if db_url is None else None
        self.db_url = db_url or f"sqlite:///{self.db_path}"
        self.alembic_dir = Path(alembic_dir or ALEMBIC_DIR).expanduser().resolve()
        self.uploads_dir = Path(uploads_dir or UPLOADS_DIR).expanduser().resolve()

        # --- Logging ---
        if log_dir:
            self.log_dir = Path(log_dir).expanduser().resolve()
            self.logger: Optional[ChronicleLogger] = ChronicleLogger(
                self.log_dir, component_name="database"
            )
        else:
            self.log_dir = None
            self.logger = None

        # --- Services ---
        self.store = FileAttachmentStore(self.uploads_dir, self.logger)
        self.export_manager = ExportManager(self.store, self.logger)

        # --- Session-scoped managers ---
        self._canvas_manager: Optional[CanvasManager] = None
        self._item_manager: Optional[ItemManager] = None
        self._link_manager: Optional[LinkManager] = None
        self._note_manager: Optional[NoteManager] = None
        self._tag_manager: Optional[TagManager] = None
        self._photo_manager: Optional[PhotoManager] = None
        self._share_manager: Optional[ShareManager] = None

        self._setup_engine()
        self.import_manager = ImportManager(
            self.SessionLocal, self.store, self.logger, id_factory
        )

        if auto_init:
            self.initialize_schema()

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        log = safe_logger(self.logger)
        try:
            log.log_operation(
                "database_init_start",
                {"db_url": self.db_url, "alembic_dir": str(self.alembic_dir)},
            )

            if self.db_path is not None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            engine_options: Dict[str, Any] = {"echo": False, "pool_pre_ping": True}
            if _is_memory_url(self.db_url):
                engine_options["poolclass"] = StaticPool
                engine_options["connect_args"] = {"check_same_thread": False}

            self.engine: Engine = create_engine(self.db_url, **engine_options)
            enable_sqlite_foreign_keys(self.engine)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            self.alembic_cfg: Config = self._setup_alembic()
            log.log_operation("database_init_complete", {"success": True})

        except Exception as e:
            log.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    # ---- Session Management ----
    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope with the entity managers bound to it.

        Commits on success, rolls back on any exception. Managers are
        available as properties (db.canvases, db.items, ...) only inside
        the scope.

        Usage:
            with db.session_scope() as session:
                item = db.items.create(canvas_id, {"type": "person", "title": "Ada"})
                db.notes.create(item.id, {"content": "Met at the docks"})
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        log = safe_logger(self.logger)

        self._canvas_manager = CanvasManager(session, self.logger)
        self._item_manager = ItemManager(session, self.logger)
        self._link_manager = LinkManager(session, self.logger)
        self._note_manager = NoteManager(session, self.logger)
        self._tag_manager = TagManager(session, self.logger)
        self._photo_manager = PhotoManager(session, self.logger, store=self.store)
        self._share_manager = ShareManager(session, self.logger)

        log.log_debug("session_start", {"session_id": session_id})
        try:
            yield session
            session.commit()
            log.log_debug("session_commit", {"session_id": session_id})
        except Exception as e:
            session.rollback()
            log.log_error(e, {"operation": "session_rollback", "session_id": session_id})
            raise
        finally:
            self._canvas_manager = None
            self._item_manager = None
            self._link_manager = None
            self._note_manager = None
            self._tag_manager = None
            self._photo_manager = None
            self._share_manager = None

            session.close()
            log.log_debug("session_close", {"session_id": session_id})

    # -------------------------------------------------------------------------
    # Entity Manager Properties
    # -------------------------------------------------------------------------

    @staticmethod
    def _active(manager: Any, name: str) -> Any:
        if manager is None:
            raise DatabaseError(
                f"{name} requires active session. "
                "Use within session_scope: "
                "with db.session_scope() as session: ..."
            )
        return manager

    @property
    def canvases(self) -> CanvasManager:
        """
        Access CanvasManager for canvas and membership operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._active(self._canvas_manager, "CanvasManager")

    @property
    def items(self) -> ItemManager:
        """Access ItemManager (session_scope only)."""
        return self._active(self._item_manager, "ItemManager")

    @property
    def links(self) -> LinkManager:
        """Access LinkManager (session_scope only)."""
        return self._active(self._link_manager, "LinkManager")

    @property
    def notes(self) -> NoteManager:
        """Access NoteManager (session_scope only)."""
        return self._active(self._note_manager, "NoteManager")

    @property
    def tags(self) -> TagManager:
        """Access TagManager (session_scope only)."""
        return self._active(self._tag_manager, "TagManager")

    @property
    def photos(self) -> PhotoManager:
        """Access PhotoManager (session_scope only)."""
        return self._active(self._photo_manager, "PhotoManager")

    @property
    def shares(self) -> ShareManager:
        """Access ShareManager (session_scope only)."""
        return self._active(self._share_manager, "ShareManager")

    # ---- Alembic setup ----
    def _setup_alembic(self) -> Config:
        """Setup Alembic configuration."""
        log = safe_logger(self.logger)
        try:
            log.log_debug("Setting up Alembic configuration...")
            alembic_cfg = Config(str(ALEMBIC_INI)) if ALEMBIC_INI.exists() else Config()
            alembic_cfg.attributes["configure_logger"] = False
            alembic_cfg.set_main_option("script_location", str(self.alembic_dir))
            alembic_cfg.set_main_option("sqlalchemy.url", self.db_url.replace("%", "%%"))
            alembic_cfg.set_main_option(
                "file_template",
                "%%(year)d%%(month).2d%%(day).2d_%%(hour).2d%%(minute).2d_%%(slug)s",
            )
            return alembic_cfg
        except Exception as e:
            log.log_error(e, {"operation": "setup_alembic"})
            raise DatabaseError(f"Alembic configuration failed: {e}") from e

    def _run_alembic(self, action, *args: Any) -> None:
        # env.py reuses this connection, so in-memory databases work too
        with self.engine.begin() as connection:
            self.alembic_cfg.attributes["connection"] = connection
            try:
                action(self.alembic_cfg, *args)
            finally:
                self.alembic_cfg.attributes.pop("connection", None)

    @handle_db_errors
    @log_database_operation("initialize_schema")
    def initialize_schema(self) -> None:
        """
        Initialize database - create tables if needed and run migrations.

        Actions:
            If the database has no tables,
                creates all tables from the ORM models
                stamps the Alembic revision to head
            If not,
                runs pending migrations to update schema
        """
        try:
            table_names = inspect(self.engine).get_table_names()
            if not table_names:
                Base.metadata.create_all(bind=self.engine)
                self._run_alembic(command.stamp, "head")
                safe_logger(self.logger).log_operation(
                    "fresh_database_created",
                    {"tables_created": len(Base.metadata.tables)},
                )
            else:
                self.upgrade_database()
                safe_logger(self.logger).log_operation(
                    "existing_database_migrated", {"table_count": len(table_names)}
                )
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Could not initialize database: {e}") from e

    @handle_db_errors
    @log_database_operation("upgrade_database")
    def upgrade_database(self, revision: str = "head") -> None:
        """Upgrade the database schema to the given Alembic revision."""
        try:
            self._run_alembic(command.upgrade, revision)
        except Exception as e:
            raise DatabaseError(f"Database upgrade failed: {e}") from e

    @handle_db_errors
    def get_migration_status(self) -> Dict[str, Optional[str]]:
        """
        Get the current migration status of the database.

        Returns:
            Dictionary with 'current_revision' and 'status'
            ('up_to_date' or 'needs_migration')
        """
        with self.engine.connect() as conn:
            current_rev = MigrationContext.configure(conn).get_current_revision()
        return {
            "current_revision": current_rev,
            "status": "up_to_date" if current_rev else "needs_migration",
        }

    # -------------------------------------------------------------------------
    # Archives
    # -------------------------------------------------------------------------

    def export_canvas(self, canvas_id: str) -> bytes:
        """
        Export a canvas to archive bytes.

        Raises:
            NotFound: If the canvas does not exist
            ExportError: If the canvas graph is incomplete
        """
        with self.session_scope() as session:
            return self.export_manager.export_canvas(session, canvas_id)

    def export_to_file(self, canvas_id: str, output: Union[str, Path]) -> Path:
        """Export a canvas and write the archive to a file."""
        with self.session_scope() as session:
            return self.export_manager.export_to_file(session, canvas_id, output)

    def import_canvas(self, data: bytes, user_id: str) -> ImportResult:
        """
        Import archive bytes as a new canvas owned by ``user_id``.

        Raises:
            MalformedArchive: If the archive is structurally invalid
            RemapError: If the archive has unresolvable references
            ImportFailed: If the commit was rolled back
        """
        return self.import_manager.import_archive(data, user_id)

    def import_from_file(self, path: Union[str, Path], user_id: str) -> ImportResult:
        """Import an archive file as a new canvas owned by ``user_id``."""
        return self.import_canvas(Path(path).read_bytes(), user_id)

    @log_database_operation("copy_shared_canvas")
    def copy_shared_canvas(self, token: str, user_id: str) -> ImportResult:
        """
        Clone the canvas behind a share token into a new canvas for a user.

        Item shares copy the whole canvas the item belongs to.

        Raises:
            NotFound: If the token does not match any share
        """
        with self.session_scope() as session:
            share = ShareManager(session, self.logger).get_by_token(token)
            data = self.export_manager.export_canvas(session, share.canvas_id)
        return self.import_manager.import_archive(data, user_id)

    # -------------------------------------------------------------------------
    # Deletes that own attachment bytes
    # -------------------------------------------------------------------------

    def delete_canvas(self, canvas_id: str, user_id: str) -> None:
        """Delete a canvas for a member, then drop its photo bytes."""
        with self.session_scope():
            filenames = self.canvases.delete(canvas_id, user_id)
        self._drop_attachments(filenames)

    def delete_item(self, item_id: str) -> None:
        """
        Delete an item with its content, then drop its photo bytes.

        The bytes are removed only after the deletion committed.
        """
        with self.session_scope():
            filenames = self.items.delete(item_id)
        self._drop_attachments(filenames)

    def delete_photo(self, photo_id: str) -> None:
        """Delete a photo row, then drop its bytes."""
        with self.session_scope():
            filename = self.photos.delete(photo_id)
        self._drop_attachments([filename])

    def _drop_attachments(self, filenames: List[str]) -> None:
        for filename in filenames:
            try:
                self.store.delete(filename)
            except AttachmentError as e:
                safe_logger(self.logger).log_warning(
                    f"Could not remove attachment {filename}", {"error": str(e)}
                )

    # -------------------------------------------------------------------------
    # Feeds
    # -------------------------------------------------------------------------

    def list_timeline(self, canvas_id: str, **options: Any) -> FeedPage:
        """One Timeline page. See FeedManager.list_timeline for options."""
        with self.session_scope() as session:
            return FeedManager(session, self.logger).list_timeline(canvas_id, **options)

    def list_gallery(self, canvas_id: str, **options: Any) -> FeedPage:
        """One Gallery page. See FeedManager.list_gallery for options."""
        with self.session_scope() as session:
            return FeedManager(session, self.logger).list_gallery(canvas_id, **options)

    def timeline_day_counts(
        self, canvas_id: str, start: Any, end: Any, parent_item_id: Optional[str] = None
    ):
        """Timeline entries per day between two dates, inclusive."""
        with self.session_scope() as session:
            return FeedManager(session, self.logger).timeline_day_counts(
                canvas_id, start, end, parent_item_id=parent_item_id
            )

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self.engine.dispose()
