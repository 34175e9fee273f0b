from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Callable

from trade_sim.contracts.persistence import SaveBundle
from trade_sim.exceptions.core import PersistenceFailure
from trade_sim.persistence.codec import decode_bundle, encode_bundle
from trade_sim.utils.clock import now_ms
from trade_sim.utils.logger import get_logger, log_debug, log_info

DEFAULT_UNIT = "portfolio"
_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileGateway:
    """
    One json document per named unit: <root>/<name>.json

    Writes go to a sibling temp file first and are moved into place with
    os.replace, so a failed save never leaves a half-written unit behind.
    """

    def __init__(self, root: str | Path, clock: Callable[[], int] = now_ms):
        self.root = Path(root)
        self.clock = clock
        self._logger = get_logger(__name__)

    def path_for(self, name: str = DEFAULT_UNIT) -> Path:
        if not _NAME_RE.match(name) or name in (".", ".."):
            raise PersistenceFailure(f"invalid unit name: {name!r}")
        return self.root / f"{name}.json"

    def exists(self, name: str = DEFAULT_UNIT) -> bool:
        return self.path_for(name).is_file()

    def save(self, bundle: SaveBundle, name: str = DEFAULT_UNIT) -> None:
        path = self.path_for(name)
        tmp = path.with_name(path.name + ".tmp")
        try:
            payload = json.dumps(encode_bundle(bundle), ensure_ascii=False, indent=2, allow_nan=False)
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, path)
        except (OSError, ValueError, TypeError) as e:
            if tmp.exists():
                tmp.unlink()
            raise PersistenceFailure(f"save failed for {path}: {e}") from e
        log_info(self._logger, "Bundle saved", path=path, transactions=len(bundle.account.transactions))

    def load(self, name: str = DEFAULT_UNIT) -> SaveBundle:
        path = self.path_for(name)
        log_debug(self._logger, "Loading bundle", path=path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PersistenceFailure(f"load failed for {path}: {e}") from e
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise PersistenceFailure(f"unreadable bundle {path}: {e}") from e
        bundle = decode_bundle(raw, clock=self.clock)
        log_info(self._logger, "Bundle loaded", path=path, symbols=bundle.market.symbols())
        return bundle
