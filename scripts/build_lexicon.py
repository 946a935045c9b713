"""Build a lexicon JSON file under `assets/` from a word-list CSV.

Contract
- Input: a CSV with header `category,word` (one row per word; extra columns ignored).
- Output: `<repo>/assets/lexicon_<lang>.json`, a JSON object `{category: [word, ...]}`.
- Cleans:
  - blank categories/words and surrounding whitespace
  - duplicate words within a category (first occurrence wins, order preserved)
- Drops categories left with fewer than 2 words (a round needs two distinct words).

Usage:
    uv run python scripts/build_lexicon.py words_it.csv --lang it

This script is deterministic.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import pandas as pd

SUPPORTED_LANGUAGES = ("it", "en")


def _clean(df: pd.DataFrame) -> pd.DataFrame:
    cols = [c.strip().casefold() for c in df.columns]
    df = df.copy()
    df.columns = cols
    if cols[:2] != ["category", "word"]:
        raise ValueError(f"Unexpected columns: {list(df.columns)}")

    out = df[["category", "word"]].dropna().copy()
    out["category"] = out["category"].astype(str).str.strip()
    out["word"] = out["word"].astype(str).str.strip()
    out = out[(out["category"] != "") & (out["word"] != "")]
    return out.drop_duplicates(subset=["category", "word"], keep="first")


def read_word_csv(path: Path) -> pd.DataFrame:
    # Words like "None", "NA" or "nan" are real entries, not missing values.
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def build_lexicon(df: pd.DataFrame) -> dict[str, list[str]]:
    cleaned = _clean(df)

    lexicon: dict[str, list[str]] = {}
    for category, group in cleaned.groupby("category", sort=True):
        words = group["word"].tolist()
        if len(words) < 2:
            continue
        lexicon[str(category)] = words
    return lexicon


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("csv", type=Path, help="source CSV with category,word columns")
    parser.add_argument("--lang", required=True, choices=SUPPORTED_LANGUAGES)
    args = parser.parse_args()

    repo_root = Path(__file__).resolve().parents[1]
    dst = repo_root / "assets" / f"lexicon_{args.lang}.json"
    dst.parent.mkdir(parents=True, exist_ok=True)

    lexicon = build_lexicon(read_word_csv(args.csv))
    if not lexicon:
        raise ValueError(f"No category with at least 2 words in {args.csv}")

    dst.write_text(json.dumps(lexicon, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")


if __name__ == "__main__":
    main()
