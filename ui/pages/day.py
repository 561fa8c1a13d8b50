# ui/pages/day.py
from __future__ import annotations

from datetime import date, datetime

import flet as ft

from core.settings import PALETTE, UI
from services.agenda import block_for, block_segments, day_agenda
from ui.compat import item_row
from utils.datetime_utils import format_hour


class DayPage:
    """Hour grid for one day with time blocks painted behind the hours."""

    def __init__(self, app):
        self.app = app
        self.header = ft.Text("", size=20, weight=ft.FontWeight.W_600)
        self.summary = ft.Text("", color=UI.theme.text_subtle)
        self.progress = ft.ProgressBar(value=0, width=200, color=UI.theme.success)
        self.grid = ft.ListView(expand=True, spacing=0)

        self.add_btn = ft.FilledButton("New Item", icon=ft.Icons.ADD, on_click=lambda e: self.app.open_editor())

        self.view = ft.Container(
            expand=True,
            padding=16,
            content=ft.Column(
                [
                    ft.Row(
                        [
                            ft.Column([self.header, self.summary], spacing=2, expand=True),
                            self.progress,
                            self.add_btn,
                        ],
                        vertical_alignment=ft.CrossAxisAlignment.CENTER,
                    ),
                    ft.Divider(height=1),
                    self.grid,
                ],
                expand=True,
                spacing=12,
            ),
        )

    def _hour_row(self, day: date, hour: int, agenda, segments, now: datetime) -> ft.Control:
        moment = datetime.combine(day, datetime.min.time()).replace(hour=hour)
        segment = block_for(segments, moment)
        is_now = day == now.date() and now.hour == hour

        block_label = ft.Container(width=4)
        bgcolor = None
        if segment:
            color = PALETTE.get(segment.block.color, PALETTE["gray"])
            bgcolor = ft.Colors.with_opacity(0.08, color)
            block_label = ft.Container(width=4, bgcolor=color, tooltip=segment.block.name)

        rows = [
            item_row(item, on_toggle=self.app.toggle_item, on_open=self.app.open_item, dense=True)
            for item in agenda.items_starting_in_hour(hour)
        ]
        if segment and segment.start.hour == hour:
            rows.insert(0, ft.Text(segment.block.name, size=11, color=UI.theme.text_subtle))

        return ft.Container(
            bgcolor=bgcolor,
            border=ft.border.only(bottom=ft.BorderSide(1, UI.theme.outline)),
            content=ft.Row(
                [
                    ft.Container(
                        width=UI.day.hours_column_width,
                        padding=ft.padding.only(top=6, right=8),
                        alignment=ft.alignment.top_right,
                        content=ft.Text(
                            format_hour(hour),
                            size=12,
                            weight=ft.FontWeight.BOLD if is_now else None,
                            color=UI.theme.accent if is_now else UI.theme.text_subtle,
                        ),
                    ),
                    block_label,
                    ft.Container(
                        expand=True,
                        padding=ft.padding.symmetric(vertical=2, horizontal=6),
                        content=ft.Column(rows, spacing=2),
                    ),
                ],
                spacing=0,
                vertical_alignment=ft.CrossAxisAlignment.STRETCH,
            ),
            height=None if len(rows) > 1 else UI.day.hour_row_height,
        )

    def load(self):
        day = self.app.current_day
        now = datetime.now()
        agenda = day_agenda(self.app.services.items, day)
        segments = block_segments(self.app.services.blocks.list_active(), day)

        self.header.value = f"{day:%A, %d %B %Y}"
        self.summary.value = f"{agenda.count_label} · {agenda.completed} completed"
        self.progress.value = agenda.progress

        # items outside the visible hours still need a row
        hours = set(range(UI.day.first_hour, UI.day.last_hour + 1))
        hours.update(item.start_time.hour for item in agenda.items)

        self.grid.controls = [self._hour_row(day, h, agenda, segments, now) for h in sorted(hours)]
        self.app.page.update()

    def scroll_to_now(self):
        now = datetime.now()
        if self.app.current_day != now.date():
            return
        offset = max(0, now.hour - UI.day.first_hour) * UI.day.hour_row_height
        self.grid.scroll_to(offset=offset, duration=300)
