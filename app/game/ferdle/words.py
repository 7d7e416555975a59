from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger("app.game.ferdle.words")

PACKAGED_ASSETS_DIR = Path(__file__).resolve().parent / "data"


@dataclass(frozen=True, slots=True)
class WordLists:
    dictionary: frozenset[str]
    targets: tuple[str, ...]


def _normalize(words: list[str], *, word_length: int) -> list[str]:
    normalized = (str(word).strip().lower() for word in words)
    return [word for word in normalized if len(word) == word_length]


def _read_json_list(path: Path) -> list[str]:
    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise ValueError(f"word list {path} must be a JSON array")
    return payload


def resolve_assets_dir(assets_dir: str | Path | None) -> Path:
    if assets_dir is None:
        return PACKAGED_ASSETS_DIR
    return Path(assets_dir)


def load_word_lists(
    *,
    language: str,
    word_length: int,
    assets_dir: str | Path | None = None,
) -> WordLists:
    base_dir = resolve_assets_dir(assets_dir)
    dictionary = _normalize(
        _read_json_list(base_dir / f"dictionary-{language}.json"),
        word_length=word_length,
    )
    # keep file order for targets: the daily permutation depends on it
    targets = _normalize(
        _read_json_list(base_dir / f"targets-{language}.json"),
        word_length=word_length,
    )

    logger.info(
        "ferdle_word_lists_loaded",
        language=language,
        word_length=word_length,
        dictionary_words=len(set(dictionary)),
        targets=len(targets),
    )
    return WordLists(dictionary=frozenset(dictionary) | frozenset(targets), targets=tuple(targets))
