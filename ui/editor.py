# ui/editor.py
from __future__ import annotations

from datetime import date, datetime, time as dt_time
from typing import Optional

import flet as ft

from core.priorities import Priority, priority_options
from core.settings import UI
from models.planner_item import PlannerItem
from services.coordinator import InvalidItemError, ItemDraft, ItemNotFoundError
from storage.config import load_config
from ui.dialogs import confirm, toast
from utils.datetime_utils import format_duration_label


def _time_options(step: int, extra: tuple[str, ...] = ()) -> list[ft.dropdown.Option]:
    values = {f"{h:02d}:{m:02d}" for h in range(24) for m in range(0, 60, step)}
    values.update(v for v in extra if v)
    return [ft.dropdown.Option(v) for v in sorted(values)]


def _hm(value: str | None) -> tuple[int, int]:
    h, m = (value or "00:00").split(":")
    return int(h), int(m)


class ItemEditor:
    """Create/edit dialog for a planner item."""

    def __init__(self, app, item: Optional[PlannerItem] = None, day: Optional[date] = None):
        self.app = app
        self.item = item
        self.cfg = load_config()
        editor = UI.editor

        now = datetime.now()
        if item:
            self.day = item.start_time.date()
            start = item.start_time.strftime("%H:%M")
            end = item.end_time.strftime("%H:%M")
            reminder_on = item.reminder_minutes_before is not None
            reminder_minutes = item.reminder_minutes_before if reminder_on else self.cfg.reminder_minutes_default
            sync = item.calendar_event_id is not None
        else:
            self.day = day or now.date()
            start_hour = min(22, max(now.hour + 1, editor.default_start_hour))
            start = f"{start_hour:02d}:00"
            end = f"{start_hour + 1:02d}:00"
            reminder_on = self.cfg.reminder_enabled_default
            reminder_minutes = self.cfg.reminder_minutes_default
            sync = self.cfg.sync_to_calendar_default

        self.title_tf = ft.TextField(
            label="What's on your agenda?",
            value=item.title if item else "",
            autofocus=True,
            on_submit=self.on_save,
        )
        self.notes_tf = ft.TextField(
            label="Notes",
            value=item.notes if item else "",
            multiline=True,
            min_lines=2,
            max_lines=5,
        )

        self.date_tf = ft.TextField(label="Date", value=self.day.isoformat(), width=150, read_only=True)
        self.date_picker = ft.DatePicker(
            first_date=date(2000, 1, 1),
            last_date=date(2100, 12, 31),
            value=self.day,
            on_change=self._on_date_change,
        )
        self.date_btn = ft.IconButton(
            icon=ft.Icons.CALENDAR_MONTH,
            tooltip="Pick date",
            on_click=lambda e: self.app.page.open(self.date_picker),
        )

        self.start_dd = ft.Dropdown(label="Start", width=120, value=start,
                                    options=_time_options(editor.minute_step, (start, end)),
                                    on_change=self._on_time_change)
        self.end_dd = ft.Dropdown(label="End", width=120, value=end, options=_time_options(editor.minute_step, (start, end)),
                                  on_change=self._on_time_change)
        self.duration_lbl = ft.Text("", color=UI.theme.text_subtle)
        self.duration_chips = ft.Row(
            [
                ft.OutlinedButton(label, data=minutes, on_click=self._on_duration_preset)
                for label, minutes in editor.duration_presets
            ],
            spacing=6,
            wrap=True,
        )

        self.priority_sb = ft.SegmentedButton(
            selected={str(int(item.priority if item else Priority.MEDIUM))},
            segments=[
                ft.Segment(value=key, label=ft.Text(label)) for key, label in priority_options().items()
            ],
        )

        self.reminder_sw = ft.Switch(label="Reminder", value=reminder_on, on_change=self._on_reminder_toggle)
        self.reminder_dd = ft.Dropdown(
            width=140,
            value=str(reminder_minutes),
            options=[
                ft.dropdown.Option(str(m), f"{m} min" if m < 60 else "1 hr")
                for m in sorted(set(editor.reminder_presets) | {reminder_minutes})
            ],
            disabled=not reminder_on,
        )
        self.sync_sw = ft.Switch(label="Sync to Calendar", value=sync)

        actions: list[ft.Control] = []
        if item:
            actions.append(
                ft.TextButton(
                    "Delete Item",
                    icon=ft.Icons.DELETE_OUTLINE,
                    style=ft.ButtonStyle(color=UI.theme.danger),
                    on_click=self.on_delete,
                )
            )
        actions += [
            ft.TextButton("Cancel", on_click=lambda e: self.close()),
            ft.FilledButton("Save" if item else "Add", on_click=self.on_save),
        ]

        self.dialog = ft.AlertDialog(
            modal=True,
            title=ft.Text("Edit Item" if item else "New Item"),
            content=ft.Container(
                width=editor.dialog_width,
                content=ft.Column(
                    [
                        self.title_tf,
                        self.notes_tf,
                        ft.Row([self.date_tf, self.date_btn], spacing=6),
                        ft.Row([self.start_dd, self.end_dd, self.duration_lbl],
                               vertical_alignment=ft.CrossAxisAlignment.CENTER),
                        self.duration_chips,
                        ft.Text("Priority", size=12, color=UI.theme.text_subtle),
                        self.priority_sb,
                        ft.Row([self.reminder_sw, self.reminder_dd],
                               vertical_alignment=ft.CrossAxisAlignment.CENTER),
                        self.sync_sw,
                    ],
                    tight=True,
                    spacing=12,
                    scroll=ft.ScrollMode.AUTO,
                ),
            ),
            actions=actions,
            actions_alignment=ft.MainAxisAlignment.END,
        )
        self._refresh_duration(update=False)

    # ---------- open/close ----------
    def open(self):
        if self.date_picker not in self.app.page.overlay:
            self.app.page.overlay.append(self.date_picker)
        self.app.page.open(self.dialog)

    def close(self):
        self.app.page.close(self.dialog)
        try:
            self.app.page.overlay.remove(self.date_picker)
        except ValueError:
            pass
        self.app.page.update()

    # ---------- field handlers ----------
    def _on_date_change(self, e):
        value = self.date_picker.value
        if isinstance(value, datetime):
            value = value.date()
        if isinstance(value, date):
            self.day = value
            self.date_tf.value = value.isoformat()
            self.app.page.update()

    def _minutes_between(self) -> int:
        sh, sm = _hm(self.start_dd.value)
        eh, em = _hm(self.end_dd.value)
        return (eh * 60 + em) - (sh * 60 + sm)

    def _refresh_duration(self, update: bool = True):
        minutes = self._minutes_between()
        self.duration_lbl.value = format_duration_label(minutes)
        self.duration_lbl.color = UI.theme.danger if minutes <= 0 else UI.theme.text_subtle
        if update:
            self.app.page.update()

    def _on_time_change(self, e):
        self._refresh_duration()

    def _on_duration_preset(self, e):
        sh, sm = _hm(self.start_dd.value)
        total = min(23 * 60 + 59, sh * 60 + sm + int(e.control.data))
        value = f"{total // 60:02d}:{total % 60:02d}"
        if not any(opt.key == value or opt.text == value for opt in self.end_dd.options):
            self.end_dd.options.append(ft.dropdown.Option(value))
        self.end_dd.value = value
        self._refresh_duration()

    def _on_reminder_toggle(self, e):
        self.reminder_dd.disabled = not self.reminder_sw.value
        self.app.page.update()

    # ---------- draft ----------
    def _draft(self) -> ItemDraft:
        sh, sm = _hm(self.start_dd.value)
        eh, em = _hm(self.end_dd.value)
        selected = next(iter(self.priority_sb.selected or {str(int(Priority.MEDIUM))}))
        return ItemDraft(
            title=self.title_tf.value or "",
            notes=self.notes_tf.value or "",
            start_time=datetime.combine(self.day, dt_time(sh, sm)),
            end_time=datetime.combine(self.day, dt_time(eh, em)),
            priority=Priority(int(selected)),
            reminder_minutes_before=int(self.reminder_dd.value) if self.reminder_sw.value else None,
        )

    # ---------- actions ----------
    def on_save(self, e):
        coordinator = self.app.services.coordinator
        try:
            draft = self._draft()
            if self.item:
                coordinator.update_item(self.item.id, draft, sync_to_calendar=bool(self.sync_sw.value))
            else:
                coordinator.create_item(draft, sync_to_calendar=bool(self.sync_sw.value))
        except (InvalidItemError, ItemNotFoundError) as exc:
            toast(self.app.page, str(exc) if isinstance(exc, InvalidItemError) else "Item no longer exists")
            return
        self.close()
        self.app.refresh()

    def on_delete(self, e):
        if not self.item:
            return

        def _delete():
            self.app.services.coordinator.delete_item(self.item.id)
            self.close()
            self.app.refresh()

        confirm(
            self.app.page,
            title="Delete item?",
            message=f"“{self.item.title}” will be removed with its reminder and calendar event.",
            confirm_label="Delete",
            on_confirm=_delete,
        )
