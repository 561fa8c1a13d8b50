# ui/pages/settings.py
from __future__ import annotations

import flet as ft

from core.logging_setup import read_log_tail
from core.settings import UI
from services.access import AuthorizationState
from storage.config import VIEWS, load_config, update_config
from ui.dialogs import toast

_STATE_LABELS = {
    AuthorizationState.UNKNOWN: "not requested",
    AuthorizationState.GRANTED: "granted",
    AuthorizationState.DENIED: "denied",
}


class SettingsPage:
    def __init__(self, app):
        self.app = app

        self.status_calendar = ft.Text()
        self.status_reminders = ft.Text()
        self.calendars_view = ft.Column(spacing=2)
        self.pending_view = ft.Column(spacing=2)

        self.connect_btn = ft.ElevatedButton(
            "Connect Google Calendar",
            icon=ft.Icons.LINK,
            on_click=self.connect_calendar,
        )
        self.reminders_btn = ft.OutlinedButton(
            "Enable reminders",
            icon=ft.Icons.NOTIFICATIONS_ACTIVE_OUTLINED,
            on_click=self.enable_reminders,
        )

        cfg = load_config()
        self.default_view_dd = ft.Dropdown(
            label="Start on",
            width=160,
            value=cfg.default_view,
            options=[ft.dropdown.Option(v, v.title()) for v in VIEWS],
            on_change=lambda e: self._save(default_view=e.control.value),
        )
        self.sync_default_sw = ft.Switch(
            label="Sync new items to calendar",
            value=cfg.sync_to_calendar_default,
            on_change=lambda e: self._save(sync_to_calendar_default=bool(e.control.value)),
        )
        self.reminder_default_sw = ft.Switch(
            label="Reminder on new items",
            value=cfg.reminder_enabled_default,
            on_change=lambda e: self._save(reminder_enabled_default=bool(e.control.value)),
        )
        self.reminder_minutes_dd = ft.Dropdown(
            label="Remind before",
            width=160,
            value=str(cfg.reminder_minutes_default),
            options=[ft.dropdown.Option(str(m), f"{m} min") for m in UI.editor.reminder_presets],
            on_change=lambda e: self._save(reminder_minutes_default=int(e.control.value)),
        )

        self.log_view = ft.Text("", selectable=True, size=12)
        self.refresh_log_btn = ft.TextButton("Refresh log", icon=ft.Icons.ARTICLE, on_click=self.refresh_log)

        content = ft.Column(
            controls=[
                ft.Text("Settings", size=24, weight=ft.FontWeight.BOLD),
                ft.Text("Preferences", size=18, weight=ft.FontWeight.W_600),
                ft.Row([self.default_view_dd, self.reminder_minutes_dd], spacing=12),
                self.sync_default_sw,
                self.reminder_default_sw,
                ft.Text("Connections", size=18, weight=ft.FontWeight.W_600),
                self.status_calendar,
                self.calendars_view,
                self.status_reminders,
                ft.Row([self.connect_btn, self.reminders_btn], spacing=12),
                ft.Text("Pending reminders", size=18, weight=ft.FontWeight.W_600),
                self.pending_view,
                ft.Column(
                    [
                        ft.Text("Log", size=18, weight=ft.FontWeight.W_600),
                        ft.Container(self.log_view, height=200, padding=10, bgcolor=UI.theme.surface),
                        self.refresh_log_btn,
                    ],
                    spacing=8,
                ),
            ],
            expand=True,
            spacing=12,
            scroll=ft.ScrollMode.AUTO,
        )

        self.view = ft.Container(content=content, expand=True, padding=20)

    def _save(self, **changes):
        update_config(**changes)
        toast(self.app.page, "Preferences saved")

    def load(self):
        services = self.app.services
        cal_state = services.calendar.authorization_status()
        self.status_calendar.value = f"Google Calendar access: {_STATE_LABELS[cal_state]}"
        self.calendars_view.controls = []
        if cal_state is AuthorizationState.GRANTED:
            self.calendars_view.controls = [
                ft.Text(f"• {ref.title}{' (primary)' if ref.is_primary else ''}", size=12)
                for ref in services.calendar.list_calendars()
            ]

        self.status_reminders.value = f"Reminders: {_STATE_LABELS[services.reminders.permission_status()]}"
        pending = services.reminders.get_pending_notifications()
        self.pending_view.controls = [
            ft.Text(f"{n.fire_at:%a %d %b %H:%M}  {n.title}", size=12) for n in pending
        ] or [ft.Text("None", size=12, color=UI.theme.text_tertiary)]

        self.log_view.value = read_log_tail()
        self.app.page.update()

    def connect_calendar(self, _):
        if self.app.services.calendar.request_access():
            toast(self.app.page, "Google Calendar connected")
        else:
            toast(self.app.page, "Google Calendar access was not granted")
        self.load()

    def enable_reminders(self, _):
        services = self.app.services
        if services.reminders.request_permission():
            rescheduled = services.coordinator.reconcile_reminders()
            toast(self.app.page, f"Reminders enabled ({rescheduled} rescheduled)")
        else:
            toast(self.app.page, "Reminders are disabled")
        self.load()

    def refresh_log(self, _):
        self.log_view.value = read_log_tail()
        self.app.page.update()
