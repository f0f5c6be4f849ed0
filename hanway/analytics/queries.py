"""
Dataframe builders for analytics.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd


CARD_COLUMNS = ["id", "state", "reps", "lapses"]
EVENT_COLUMNS = ["vocabulary_id", "timestamp", "rating", "day_utc"]


def cards_to_df(cards: Iterable) -> pd.DataFrame:
    """
    Tabulate vocabulary items (or Cards) for metric computation.
    """
    rows = [
        {
            "id": getattr(card, "id", None),
            "state": getattr(card.state, "value", card.state),
            "reps": card.reps,
            "lapses": card.lapses,
        }
        for card in cards
    ]
    if not rows:
        return pd.DataFrame(columns=CARD_COLUMNS)
    return pd.DataFrame(rows, columns=CARD_COLUMNS)


def events_to_df(events: list[dict]) -> pd.DataFrame:
    """
    Tabulate review events with a UTC day column.
    """
    if not events:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    df = pd.DataFrame(events)
    df = df[["vocabulary_id", "timestamp", "rating"]].copy()
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True, errors="coerce")
    df = df.dropna(subset=["timestamp"])
    df["day_utc"] = df["timestamp"].dt.floor("D")
    df = df.sort_values("timestamp").reset_index(drop=True)
    return df

