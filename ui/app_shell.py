# ui/app_shell.py
from __future__ import annotations

import asyncio
from datetime import date, timedelta

import flet as ft

from core.logging_setup import get_logger
from core.settings import REMINDERS, UI
from services import notification_center
from services.bootstrap import AppServices
from services.coordinator import ItemNotFoundError
from services.reminders import PendingNotification, item_id_from_notification
from storage.config import load_config
from ui.dialogs import toast
from ui.editor import ItemEditor

from .pages.day import DayPage
from .pages.settings import SettingsPage
from .pages.today import TodayPage
from .pages.week import WeekPage

logger = get_logger("ui")

VIEWS = ("day", "week", "today", "settings")


class AppShell:
    def __init__(self, page: ft.Page, services: AppServices):
        self.page = page
        self.services = services
        self.current_day: date = date.today()

        self.page.title = UI.app_title
        self.page.horizontal_alignment = ft.CrossAxisAlignment.STRETCH
        self.page.vertical_alignment = ft.MainAxisAlignment.START

        # ---------- pages ----------
        self._pages = {
            "day": DayPage(self),
            "week": WeekPage(self),
            "today": TodayPage(self),
            "settings": SettingsPage(self),
        }
        default_view = load_config().default_view
        self._active_view = default_view if default_view in VIEWS else "day"

        self.content = ft.Container(expand=True)

        # ---------- date navigation ----------
        self.period_lbl = ft.Text("", weight=ft.FontWeight.W_500)
        self.toolbar = ft.Container(
            padding=ft.padding.symmetric(horizontal=16, vertical=8),
            content=ft.Row(
                [
                    ft.IconButton(icon=ft.Icons.CHEVRON_LEFT, tooltip="Previous", on_click=lambda e: self.shift(-1)),
                    ft.OutlinedButton("Today", on_click=lambda e: self.go_today()),
                    ft.IconButton(icon=ft.Icons.CHEVRON_RIGHT, tooltip="Next", on_click=lambda e: self.shift(1)),
                    self.period_lbl,
                ],
                vertical_alignment=ft.CrossAxisAlignment.CENTER,
            ),
        )

        self.nav = ft.NavigationRail(
            selected_index=VIEWS.index(self._active_view),
            label_type=ft.NavigationRailLabelType.ALL,
            min_width=90,
            group_alignment=-0.9,
            on_change=self.on_nav_change,
            destinations=[
                ft.NavigationRailDestination(
                    icon=ft.Icons.VIEW_DAY_OUTLINED, selected_icon=ft.Icons.VIEW_DAY, label="Day"
                ),
                ft.NavigationRailDestination(
                    icon=ft.Icons.VIEW_WEEK_OUTLINED, selected_icon=ft.Icons.VIEW_WEEK, label="Week"
                ),
                ft.NavigationRailDestination(
                    icon=ft.Icons.CHECK_CIRCLE_OUTLINE, selected_icon=ft.Icons.CHECK_CIRCLE, label="Today"
                ),
                ft.NavigationRailDestination(
                    icon=ft.Icons.SETTINGS_OUTLINED, selected_icon=ft.Icons.SETTINGS, label="Settings"
                ),
            ],
        )

        self.root = ft.Row(
            controls=[
                ft.Container(self.nav, width=88),
                ft.VerticalDivider(width=1),
                ft.Column([self.toolbar, self.content], expand=True, spacing=0),
            ],
            expand=True,
            spacing=0,
        )

        self._refresh_task = None
        self._mounted = False

        for event in ("after_create", "after_update", "after_delete"):
            self.services.coordinator.subscribe(event, self._on_item_changed)
        notification_center.subscribe(self._on_reminder_delivered)

    # ---------- mount / teardown ----------
    def mount(self):
        self.page.controls.clear()
        self.page.add(self.root)
        self._mounted = True
        self._show(self._active_view)
        self._refresh_task = self.page.run_task(self._auto_refresh_loop)

    def dispose(self):
        self._mounted = False
        for event in ("after_create", "after_update", "after_delete"):
            self.services.coordinator.unsubscribe(event, self._on_item_changed)
        notification_center.unsubscribe(self._on_reminder_delivered)
        if self._refresh_task:
            self._refresh_task.cancel()
            self._refresh_task = None

    def _has_open_overlay(self) -> bool:
        return any(getattr(c, "open", False) for c in (self.page.overlay or []))

    async def _auto_refresh_loop(self):
        # picks up sync badges written by background calendar work
        while self._mounted:
            await asyncio.sleep(UI.refresh_interval_sec)
            if not self._mounted or self._has_open_overlay():
                continue
            self.refresh()

    # ---------- navigation ----------
    def _show(self, view: str):
        self._active_view = view
        self.content.content = self._pages[view].view
        self.toolbar.visible = view in ("day", "week")
        self.refresh()
        if view == "day":
            self._pages["day"].scroll_to_now()

    def on_nav_change(self, e: ft.ControlEvent):
        self._show(VIEWS[int(e.control.selected_index)])

    def shift(self, direction: int):
        step = timedelta(days=7) if self._active_view == "week" else timedelta(days=1)
        self.current_day = self.current_day + step * direction
        self.refresh()

    def go_today(self):
        self.current_day = date.today()
        self.refresh()

    def show_day(self, day: date):
        self.current_day = day
        self.nav.selected_index = VIEWS.index("day")
        self._show("day")

    def refresh(self):
        if self._active_view == "week":
            self.period_lbl.value = f"Week of {self.current_day:%d %b %Y}"
        else:
            self.period_lbl.value = f"{self.current_day:%a, %d %b %Y}"
        self._pages[self._active_view].load()

    # ---------- item actions shared by the pages ----------
    def open_editor(self, day: date | None = None):
        ItemEditor(self, day=day or self.current_day).open()

    def open_item(self, item_id: str):
        item = self.services.items.get(item_id)
        if item is None:
            toast(self.page, "Item no longer exists")
            self.refresh()
            return
        ItemEditor(self, item=item).open()

    def toggle_item(self, item_id: str):
        try:
            self.services.coordinator.toggle_completed(item_id)
        except ItemNotFoundError:
            toast(self.page, "Item no longer exists")
            self.refresh()

    def _on_item_changed(self, item_id: str):
        if self._mounted:
            self.refresh()

    # ---------- reminders ----------
    def _on_reminder_delivered(self, notification: PendingNotification):
        # called on the scheduler thread
        if self._mounted:
            self.page.run_task(self._show_reminder, notification)

    async def _show_reminder(self, notification: PendingNotification):
        def _mark_complete(e):
            self.page.close(banner)
            item_id = item_id_from_notification(notification.id)
            item = self.services.items.get(item_id) if item_id else None
            if item and not item.is_completed:
                self.services.coordinator.toggle_completed(item.id)

        def _snooze(e):
            self.page.close(banner)
            self.services.coordinator.snooze_reminder(notification)
            toast(self.page, f"Snoozed for {REMINDERS.snooze_minutes} minutes")

        banner = ft.Banner(
            leading=ft.Icon(ft.Icons.NOTIFICATIONS_ACTIVE, color=UI.theme.accent),
            content=ft.Column(
                [
                    ft.Text(notification.title, weight=ft.FontWeight.W_600),
                    ft.Text(notification.body, color=UI.theme.text_subtle),
                ],
                tight=True,
                spacing=2,
            ),
            actions=[
                ft.TextButton("Mark Complete", on_click=_mark_complete),
                ft.TextButton("Snooze 10 min", on_click=_snooze),
                ft.TextButton("Dismiss", on_click=lambda e: self.page.close(banner)),
            ],
        )
        logger.debug("Showing reminder %s", notification.id)
        self.page.open(banner)
