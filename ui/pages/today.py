# ui/pages/today.py
from __future__ import annotations

from datetime import date, datetime

import flet as ft

from core.settings import UI
from services.agenda import day_agenda, next_up
from ui.compat import item_row
from ui.dialogs import toast
from utils.datetime_utils import format_clock


class TodayPage:
    """Compact list of today's items with a one-line quick add."""

    def __init__(self, app):
        self.app = app

        self.quick_tf = ft.TextField(
            hint_text="Quick add for the next free hour",
            expand=True,
            prefix=ft.Icon(ft.Icons.BOLT),
            on_submit=self.on_quick_add,
        )
        self.quick_btn = ft.IconButton(icon=ft.Icons.ADD, tooltip="Add", on_click=self.on_quick_add)

        self.header = ft.Text("Today", size=20, weight=ft.FontWeight.W_600)
        self.counter = ft.Text("", color=UI.theme.text_subtle)
        self.next_up = ft.Text("", size=13)
        self.list = ft.ListView(expand=True, spacing=4)

        self.view = ft.Container(
            expand=True,
            padding=16,
            content=ft.Column(
                [
                    ft.Row([self.header, self.counter], vertical_alignment=ft.CrossAxisAlignment.END),
                    self.next_up,
                    ft.Row([self.quick_tf, self.quick_btn]),
                    ft.Divider(height=1),
                    self.list,
                ],
                expand=True,
                spacing=10,
            ),
        )

    def load(self):
        now = datetime.now()
        agenda = day_agenda(self.app.services.items, date.today())
        self.header.value = f"Today, {now:%d %B}"
        self.counter.value = f"{agenda.completed}/{agenda.count} completed"

        upcoming = next_up(agenda, now)
        if upcoming:
            when = "now" if upcoming.start_time <= now else f"at {format_clock(upcoming.start_time)}"
            self.next_up.value = f"Next up {when}: {upcoming.title}"
        else:
            self.next_up.value = "Nothing left for today."

        if agenda.items:
            self.list.controls = [
                item_row(item, on_toggle=self.app.toggle_item, on_open=self.app.open_item)
                for item in agenda.items
            ]
        else:
            self.list.controls = [ft.Text("No items scheduled for today.", color=UI.theme.text_tertiary)]
        self.app.page.update()

    def on_quick_add(self, e):
        title = (self.quick_tf.value or "").strip()
        if not title:
            return
        item = self.app.services.coordinator.quick_add(title)
        self.quick_tf.value = ""
        toast(self.app.page, f"Added “{item.title}” at {format_clock(item.start_time)}")
        self.app.refresh()
