"""Color tag assignment for datasets.

Datasets get a stable color tag per name: well-known dataset families map
to fixed colors, everything else cycles through a base palette.
"""

from threading import Lock

BASE_COLORS = [
    "#3b82f6",
    "#22c55e",
    "#f97316",
    "#ef4444",
    "#8b5cf6",
    "#06b6d4",
    "#f59e0b",
    "#ec4899",
    "#84cc16",
    "#14b8a6",
    "#6366f1",
    "#dc2626",
    "#059669",
    "#7c3aed",
    "#0891b2",
]

DATASET_FAMILY_COLORS = {
    "pos_fom": "#3b82f6",
    "pos_lfom": "#22c55e",
    "lfom": "#f59e0b",
    "fom": "#f97316",
    "mda_claim": "#8b5cf6",
    "stock": "#14b8a6",
    "production": "#7ab839",
}

MERGED_COLOR = "#6366f1"


def detect_dataset_family(dataset_name: str) -> str | None:
    """Detect a known dataset family from its name.

    Order matters: the most specific families are checked first.
    """
    lower_name = dataset_name.lower()
    has_pos = "pos" in lower_name
    has_lfom = "lfom" in lower_name

    if has_pos and has_lfom:
        return "pos_lfom"
    if has_pos and "fom" in lower_name:
        return "pos_fom"
    if has_lfom:
        return "lfom"
    if "fom" in lower_name:
        return "fom"
    if "mda" in lower_name and "claim" in lower_name:
        return "mda_claim"
    if "stock" in lower_name or "inventory" in lower_name:
        return "stock"
    if "production" in lower_name:
        return "production"
    return None


class ColorAssigner:
    """Assigns a color tag to each dataset name, once.

    Each pipeline owns one assigner so colors stay stable for its lifetime.
    """

    def __init__(self, palette: list[str] | None = None):
        self.palette = list(palette or BASE_COLORS)
        self._assigned: dict[str, str] = {}
        self._next_index = 0
        self._lock = Lock()

    def color_for(self, dataset_name: str) -> str:
        with self._lock:
            if dataset_name in self._assigned:
                return self._assigned[dataset_name]

            family = detect_dataset_family(dataset_name)
            if family is not None:
                color = DATASET_FAMILY_COLORS[family]
            else:
                color = self.palette[self._next_index % len(self.palette)]
                self._next_index += 1

            self._assigned[dataset_name] = color
            return color
