from __future__ import annotations

import math
from dataclasses import dataclass, replace

from PySide6.QtCore import QRect
from PySide6.QtGui import QGuiApplication

from confstore.settings_models import WindowBounds, WindowPlacement


@dataclass(frozen=True, slots=True)
class WorkArea:
    x: int
    y: int
    width: int
    height: int
    primary: bool = False

    def rect(self) -> QRect:
        return QRect(self.x, self.y, self.width, self.height)


def list_monitor_work_areas() -> list[WorkArea]:
    """Available geometry of every screen, or ``[]`` without a running Qt application."""
    if QGuiApplication.instance() is None:
        return []
    primary = QGuiApplication.primaryScreen()
    areas: list[WorkArea] = []
    for screen in QGuiApplication.screens():
        geometry = screen.availableGeometry()
        areas.append(
            WorkArea(
                x=geometry.x(),
                y=geometry.y(),
                width=geometry.width(),
                height=geometry.height(),
                primary=screen == primary,
            )
        )
    return areas


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _intersection_area(desired: QRect, work: QRect) -> int:
    overlap = desired.intersected(work)
    if overlap.isEmpty():
        return 0
    return overlap.width() * overlap.height()


def normalize_window_placement(
    saved: WindowPlacement,
    current_dpi: int,
    work_areas: list[WorkArea] | None = None,
) -> WindowPlacement:
    """Rescale ``saved`` to ``current_dpi`` and pull it back onto a visible work area.

    The window keeps its position when it already fits inside some work area.
    Otherwise the work area with the largest overlap is chosen (the primary one
    when nothing overlaps), the size is capped to that area and the top-left
    corner is clamped so the whole window is on screen.
    """
    width = max(1, saved.bounds.width)
    height = max(1, saved.bounds.height)

    if saved.dpi and saved.dpi > 0 and current_dpi > 0 and saved.dpi != current_dpi:
        scale = current_dpi / saved.dpi
        width = max(1, _round_half_away(width * scale))
        height = max(1, _round_half_away(height * scale))

    result = replace(saved, bounds=WindowBounds(saved.bounds.x, saved.bounds.y, width, height))

    areas = list_monitor_work_areas() if work_areas is None else list(work_areas)
    if not areas:
        return result

    desired = QRect(saved.bounds.x, saved.bounds.y, width, height)
    for area in areas:
        if area.rect().contains(desired):
            return result

    best_index = 0
    best_area = 0
    any_intersection = False
    for index, area in enumerate(areas):
        overlap = _intersection_area(desired, area.rect())
        if overlap <= 0:
            continue
        any_intersection = True
        if overlap > best_area:
            best_area = overlap
            best_index = index

    if not any_intersection:
        best_index = next((index for index, area in enumerate(areas) if area.primary), 0)

    work = areas[best_index]
    width = _clamp(width, 1, max(1, work.width))
    height = _clamp(height, 1, max(1, work.height))
    x = _clamp(saved.bounds.x, work.x, work.x + work.width - width)
    y = _clamp(saved.bounds.y, work.y, work.y + work.height - height)
    result.bounds = WindowBounds(x, y, width, height)
    return result


__all__ = [
    "WorkArea",
    "list_monitor_work_areas",
    "normalize_window_placement",
]
