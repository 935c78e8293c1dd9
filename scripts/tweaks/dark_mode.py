"""Switch apps and/or the system shell to the dark theme."""

from __future__ import annotations

from winprovision.lib.registry import set_dword

KEY = r"Software\Microsoft\Windows\CurrentVersion\Themes\Personalize"


def run(params: dict, dry_run: bool) -> list[str]:
    values = {}
    if params.get("apps", True):
        values["AppsUseLightTheme"] = 0
    if params.get("system", True):
        values["SystemUsesLightTheme"] = 0
    if not values:
        return ["Nothing to change"]

    if dry_run:
        return [f"Would set HKCU\\{KEY}\\{name} = {v}" for name, v in values.items()]

    for name, v in values.items():
        set_dword(KEY, name, v)
    return [f"Set {name} = {v}" for name, v in values.items()]
