# ui/pages/week.py
from __future__ import annotations

from datetime import date

import flet as ft

from core.settings import PALETTE, UI
from services.agenda import DayAgenda, week_agenda
from ui.compat import strike_text


class WeekPage:
    def __init__(self, app):
        self.app = app
        self.header = ft.Text("", size=20, weight=ft.FontWeight.W_600)
        self.summary = ft.Text("", color=UI.theme.text_subtle)
        self.days_row = ft.Row(
            spacing=8,
            scroll=ft.ScrollMode.AUTO,
            vertical_alignment=ft.CrossAxisAlignment.START,
        )

        self.view = ft.Container(
            expand=True,
            padding=16,
            content=ft.Column(
                [
                    ft.Column([self.header, self.summary], spacing=2),
                    ft.Divider(height=1),
                    self.days_row,
                ],
                expand=True,
                spacing=12,
            ),
        )

    def _day_card(self, agenda: DayAgenda, today: date) -> ft.Control:
        limit = UI.week.items_per_day_preview
        is_today = agenda.day == today

        lines: list[ft.Control] = []
        for item in agenda.items[:limit]:
            lines.append(
                ft.Container(
                    on_click=lambda e, _id=item.id: self.app.open_item(_id),
                    content=ft.Row(
                        [
                            ft.Container(width=6, height=6, border_radius=3,
                                         bgcolor=PALETTE[item.priority.color]),
                            strike_text(
                                f"{item.start_time:%H:%M} {item.title}",
                                strike=item.is_completed,
                                size=12,
                                max_lines=1,
                                overflow=ft.TextOverflow.ELLIPSIS,
                                expand=True,
                            ),
                        ],
                        spacing=4,
                    ),
                )
            )
        hidden = agenda.count - limit
        if hidden > 0:
            lines.append(ft.Text(f"+{hidden} more", size=11, color=UI.theme.text_subtle))
        if not agenda.items:
            lines.append(ft.Text("No items", size=11, color=UI.theme.text_tertiary))

        footer = []
        if agenda.items:
            footer.append(ft.ProgressBar(value=agenda.progress, color=UI.theme.success, height=4))

        return ft.Container(
            width=UI.week.day_card_width,
            padding=10,
            border_radius=10,
            bgcolor=UI.theme.today_bg if is_today else UI.theme.card,
            border=ft.border.all(1, UI.theme.accent if is_today else UI.theme.outline),
            on_click=lambda e, d=agenda.day: self.app.show_day(d),
            content=ft.Column(
                [
                    ft.Text(f"{agenda.day:%a}", size=12, color=UI.theme.text_subtle),
                    ft.Text(f"{agenda.day.day}", size=22, weight=ft.FontWeight.W_600),
                    ft.Text(agenda.count_label, size=11, color=UI.theme.text_subtle),
                    *lines,
                    *footer,
                ],
                spacing=4,
            ),
        )

    def load(self):
        agenda = week_agenda(self.app.services.items, self.app.current_day)
        today = date.today()
        self.header.value = f"Week {agenda.week_number} · {agenda.range_label}"
        self.summary.value = f"{agenda.completed} of {agenda.total} completed"
        self.days_row.controls = [self._day_card(day, today) for day in agenda.days]
        self.app.page.update()
