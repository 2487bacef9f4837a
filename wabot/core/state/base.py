"""
WaBot - State Store Base Module
===============================

Loading and atomic saving of the JSON state document.

DESIGN:
    The whole document is held in memory and rewritten on every mutation.
    load() never raises: a missing, unreadable or malformed file yields a
    fresh default document and an error log entry. save() writes a sibling
    temporary file and swaps it into place with os.replace(), so a crash
    mid-write leaves the previous file intact.
"""

import json
import os
from pathlib import Path
from typing import Iterable, Optional

from wabot.core.constants import DEFAULT_WARN_LIMIT
from wabot.core.errors import StateStoreError
from wabot.core.logger import logger
from wabot.core.state.models import GlobalSettings, StateDocument


class StateBase:
    """Holds the in-memory document and its backing file."""

    def _init_base(
        self,
        path: Path,
        default_prefix: str = ".",
        admin_numbers: Iterable[str] = (),
        warn_limit: int = DEFAULT_WARN_LIMIT,
    ) -> None:
        self.path: Path = Path(path)
        self.warn_limit = warn_limit
        self._default_prefix = default_prefix
        self._seed_admins = sorted(set(admin_numbers))
        self.document: StateDocument = self._default_document()

    def _default_document(self) -> StateDocument:
        return StateDocument(
            settings=GlobalSettings(
                prefix=self._default_prefix,
                admin_numbers=list(self._seed_admins),
            )
        )

    # =========================================================================
    # Load
    # =========================================================================

    def load(self) -> StateDocument:
        """
        Read the state file into memory.

        Returns:
            The loaded document, or a default one when the file is absent
            or cannot be parsed.
        """
        if not self.path.exists():
            self.document = self._default_document()
            logger.tree("State Initialized", [
                ("File", str(self.path)),
                ("Reason", "No existing state file"),
            ], emoji="🗂️")
            return self.document

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            self.document = StateDocument.from_dict(raw)
        except (OSError, ValueError, TypeError) as e:
            logger.error("State Load Failed", [
                ("File", str(self.path)),
                ("Error", f"{type(e).__name__}: {str(e)[:100]}"),
                ("Action", "Starting from defaults"),
            ])
            self.document = self._default_document()
            return self.document

        self._merge_seed_admins()
        self._clamp_warns()

        logger.tree("State Loaded", [
            ("File", str(self.path)),
            ("Groups", str(len(self.document.groups))),
            ("Users", str(len(self.document.users))),
            ("Prefix", self.document.settings.prefix),
        ], emoji="🗂️")
        return self.document

    def _merge_seed_admins(self) -> None:
        admins = self.document.settings.admin_numbers
        for number in self._seed_admins:
            if number not in admins:
                admins.append(number)

    def _clamp_warns(self) -> None:
        # older files count past the limit
        for user_id, record in self.document.users.items():
            if record.warns > self.warn_limit:
                logger.warning("Warn Count Clamped", [
                    ("User", user_id),
                    ("Stored", str(record.warns)),
                    ("Limit", str(self.warn_limit)),
                ])
                record.warns = self.warn_limit

    # =========================================================================
    # Save
    # =========================================================================

    def save(self) -> None:
        """
        Persist the whole document atomically.

        Raises:
            StateStoreError: If the file cannot be written.
        """
        tmp_path: Optional[Path] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            payload = json.dumps(self.document.to_dict(), indent=2, ensure_ascii=False)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("State Save Failed", [
                ("File", str(self.path)),
                ("Error", f"{type(e).__name__}: {str(e)[:100]}"),
            ])
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise StateStoreError(f"Could not write state file {self.path}") from e


__all__ = ["StateBase"]
