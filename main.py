# wrangle/main.py
import os, sys
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
import flet as ft

from core.settings import APP_NAME, UI
from services.bootstrap import build_services
from ui.app_shell import AppShell


def main(page: ft.Page):
    page.title = UI.app_title
    page.theme_mode = ft.ThemeMode(UI.theme_mode)
    page.theme = ft.Theme(color_scheme_seed=UI.color_scheme_seed)
    page.appbar = ft.AppBar(title=ft.Text(APP_NAME), center_title=False)
    page.padding = 0
    page.window.width = UI.window_width
    page.window.height = UI.window_height
    page.window.min_width = UI.window_min_width
    page.window.min_height = UI.window_min_height

    services = build_services()
    shell = AppShell(page, services)

    def on_disconnect(e):
        shell.dispose()
        services.shutdown()

    page.on_disconnect = on_disconnect
    shell.mount()


def run():
    ft.app(target=main)


if __name__ == "__main__":
    run()
