"""HKCU registry writes for the bundled tweak scripts."""

from __future__ import annotations

import sys


def set_dword(key_path: str, name: str, value: int) -> None:
    if sys.platform != "win32":
        raise RuntimeError("Registry tweaks require Windows")

    import winreg

    with winreg.CreateKeyEx(winreg.HKEY_CURRENT_USER, key_path, 0, winreg.KEY_SET_VALUE) as key:
        winreg.SetValueEx(key, name, 0, winreg.REG_DWORD, int(value))
