import flet as ft


def toast(page: ft.Page, message: str, *, action: str | None = None, on_action=None, duration: int = 3000):
    bar = ft.SnackBar(
        content=ft.Text(message),
        action=action,
        on_action=on_action,
        duration=duration,
    )
    page.open(bar)
    return bar


def confirm(page: ft.Page, *, title: str, message: str, confirm_label: str, on_confirm):
    def _close(_):
        page.close(dlg)

    def _ok(_):
        page.close(dlg)
        on_confirm()

    dlg = ft.AlertDialog(
        modal=True,
        title=ft.Text(title),
        content=ft.Text(message),
        actions=[
            ft.TextButton("Cancel", on_click=_close),
            ft.FilledButton(confirm_label, on_click=_ok),
        ],
        actions_alignment=ft.MainAxisAlignment.END,
    )
    page.open(dlg)
    return dlg
