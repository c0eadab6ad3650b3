import re
from pathlib import Path
from typing import Dict

MESSAGES: Dict[str, Dict[str, str]] = {}

DEFAULT_LANG = "ru"
MESSAGES_FILE = Path(__file__).resolve().parent / "messages.txt"

LINE_RE = re.compile(r'^(\w+):([^|]+)\|\s*"(.*)"$')


def load_messages(path: str | Path = MESSAGES_FILE):
    """Файл строк вида: ru:client:main:book | "✂️ Записаться на стрижку"."""
    MESSAGES.clear()

    path = Path(path)
    if not path.exists():
        raise RuntimeError(f"messages file not found: {path}")

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        m = LINE_RE.match(line)
        if not m:
            continue

        lang, key, text = m.groups()
        MESSAGES.setdefault(lang, {})[key.strip()] = text.replace("\\n", "\n").strip()


def t(key: str, lang: str | None = None, *args) -> str:
    """Текст по ключу; подстановка %s-аргументов, при отсутствии ключа сам ключ."""
    if not MESSAGES:
        load_messages()

    text = (
        MESSAGES.get(lang or DEFAULT_LANG, {}).get(key)
        or MESSAGES.get(DEFAULT_LANG, {}).get(key)
        or key
    )

    if args:
        try:
            return text % args
        except (TypeError, ValueError):
            return text

    return text
