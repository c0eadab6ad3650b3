"""
Allow-list of privileged identities (admins).

Sources, merged and de-duplicated:
- ADMIN_IDS: comma separated list
- ADMIN_ID: single id
- BOT_CONFIG_FILE: JSON with "ADMIN_IDS" (list) or "ADMIN_ID"

Loaded once at import.
"""

import json
import logging
from pathlib import Path

from bot.app.config import Settings, settings

logger = logging.getLogger(__name__)


def _parse_id_list(raw: str) -> list[int]:
    ids = []
    for part in raw.replace(";", ",").split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError:
            logger.warning(f"Ignoring invalid admin id: {part!r}")
    return ids


def _config_error(path: Path, reason: str):
    logger.critical(f"Bot config file {path} is invalid: {reason}")
    raise SystemExit(1)


def _read_config_file(path: Path) -> list[int]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning(f"Bot config file not found: {path}")
        return []
    except (OSError, json.JSONDecodeError) as e:
        _config_error(path, str(e))

    if not isinstance(data, dict):
        _config_error(path, "top level must be an object")

    value = data.get("ADMIN_IDS")
    if value is None:
        raw = []
    elif isinstance(value, list):
        raw = list(value)
    elif isinstance(value, str):
        raw = [part.strip() for part in value.replace(";", ",").split(",") if part.strip()]
    else:
        _config_error(path, "ADMIN_IDS must be a list or a comma separated string")
    if data.get("ADMIN_ID") is not None:
        raw.append(data["ADMIN_ID"])

    ids = []
    for item in raw:
        # bool is an int subclass
        if isinstance(item, bool):
            _config_error(path, f"invalid admin id {item!r}")
        try:
            ids.append(int(item))
        except (TypeError, ValueError):
            _config_error(path, f"invalid admin id {item!r}")
    return ids


def load_admin_ids(cfg: Settings) -> list[int]:
    ids = _parse_id_list(cfg.ADMIN_IDS)
    if cfg.ADMIN_ID is not None:
        ids.append(cfg.ADMIN_ID)
    if cfg.BOT_CONFIG_FILE:
        ids.extend(_read_config_file(cfg.BOT_CONFIG_FILE))

    result: list[int] = []
    for tg_id in ids:
        if tg_id not in result:
            result.append(tg_id)
    return result


ADMIN_IDS: list[int] = load_admin_ids(settings)


def is_admin(tg_id: int) -> bool:
    return tg_id in ADMIN_IDS
