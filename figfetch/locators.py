"""Every Figma-specific string the automation relies on.

Figma ships UI changes without notice; when a selector stops matching, update it here
(or pass a patched FigmaLocators to fetch_file) rather than in the interaction code.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass


@dataclass(frozen=True)
class FigmaLocators:
    # login
    login_url: str = "https://www.figma.com/login"
    post_login_url: str = r".*figma.com/files.*"
    email_input: str = 'input[name="email"]'
    password_input: str = 'input[name="password"]'
    submit_button: str = 'button[type="submit"]'

    # primary path: main menu -> File -> Save local copy
    main_menu_role: str = "button"
    main_menu_name: str = "Main menu"
    file_menu_test_id: str = "dropdown-option-File"
    file_menu_text: str = "File"
    save_local_copy_text: str = "Save local copy…"

    # fallback path: quick actions palette
    palette_input: str = '[data-testid="quick-actions-search-input"]'
    palette_query: str = "save"
    palette_confirm_key: str = "Enter"
    palette_shortcut_mac: str = "Meta+/"
    palette_shortcut_other: str = "Control+/"

    @property
    def post_login_pattern(self) -> re.Pattern:
        return re.compile(self.post_login_url)

    def palette_shortcut(self, platform: str = sys.platform) -> str:
        return self.palette_shortcut_mac if platform == "darwin" else self.palette_shortcut_other


DEFAULT_LOCATORS = FigmaLocators()
