import flet as ft

from core.settings import PALETTE, UI
from models.planner_item import PlannerItem
from utils.datetime_utils import format_time_range

TEXT_ACCEPTS_DECORATION = "decoration" in ft.Text.__init__.__code__.co_varnames


def strike_text(text: str, *, tooltip: str | None = None, strike: bool = False, **kwargs):
    if TEXT_ACCEPTS_DECORATION:
        t = ft.Text(text, tooltip=tooltip, **kwargs)
        if strike:
            t.decoration = ft.TextDecoration.LINE_THROUGH
        return t
    return ft.Text(
        text,
        tooltip=tooltip,
        style=ft.TextStyle(decoration=ft.TextDecoration.LINE_THROUGH if strike else None),
        **kwargs,
    )


def item_row(item: PlannerItem, *, on_toggle, on_open, dense: bool = False) -> ft.Control:
    """Checkbox, title/time and priority dot; shared by all pages."""
    subtle = UI.theme.text_tertiary if item.is_completed else None
    icons = []
    if item.calendar_event_id:
        icons.append(ft.Icon(ft.Icons.EVENT_AVAILABLE, size=14, color=UI.theme.text_subtle, tooltip="Synced"))
    if item.reminder_minutes_before is not None:
        icons.append(ft.Icon(ft.Icons.NOTIFICATIONS_NONE, size=14, color=UI.theme.text_subtle,
                             tooltip=f"{item.reminder_minutes_before} min before"))
    return ft.Container(
        padding=ft.padding.symmetric(vertical=4 if dense else 8, horizontal=8),
        border_radius=8,
        on_click=lambda e, _id=item.id: on_open(_id),
        content=ft.Row(
            [
                ft.IconButton(
                    icon=ft.Icons.CHECK_CIRCLE if item.is_completed else ft.Icons.RADIO_BUTTON_UNCHECKED,
                    icon_color=UI.theme.success if item.is_completed else UI.theme.text_tertiary,
                    on_click=lambda e, _id=item.id: on_toggle(_id),
                ),
                ft.Container(width=8, height=8, border_radius=4, bgcolor=PALETTE[item.priority.color]),
                ft.Column(
                    [
                        strike_text(item.title, strike=item.is_completed, color=subtle,
                                    weight=ft.FontWeight.W_500, size=13 if dense else 14),
                        ft.Text(format_time_range(item.start_time, item.end_time), size=11,
                                color=UI.theme.text_subtle),
                    ],
                    spacing=0,
                    expand=True,
                ),
                *icons,
            ],
            spacing=6,
            vertical_alignment=ft.CrossAxisAlignment.CENTER,
        ),
    )
