"""
Navigation state of the browser view.

Every transition returns a new state; nothing here touches the network.
"""

import dataclasses
from dataclasses import dataclass
from enum import StrEnum
from typing import Self

from s3crypt.models.objects import FOLDER_SEPARATOR, DecryptedKey


class Screen(StrEnum):
    """Screen the application is showing."""

    SIGN_IN = "sign-in"
    BROWSER = "browser"


@dataclass(frozen=True, kw_only=True)
class NavigationState:
    """
    Attributes:
        current_directory: "/"-joined prefix with a trailing "/", "" for root.
        expanded: Decrypted path of the item whose dropdown is open, "" for none.
        selected: Selected keys, most recently selected first.
    """

    current_directory: str = ""
    expanded: str = ""
    selected: tuple[DecryptedKey, ...] = ()

    def enter(self, directory: str) -> Self:
        """Move into a directory and close any dropdown."""
        return dataclasses.replace(self, current_directory=directory, expanded="")

    def back(self) -> Self:
        """
        Move to the parent directory.

        Drops the trailing empty segment and the last real one; at root
        there is nothing to drop.
        """
        if not self.current_directory:
            return self
        segments = self.current_directory.split(FOLDER_SEPARATOR)[:-2]
        parent = "".join(f"{segment}{FOLDER_SEPARATOR}" for segment in segments)
        return dataclasses.replace(self, current_directory=parent)

    def toggle_selected(self, key: DecryptedKey) -> Self:
        """Deselect a selected key, or select it (prepending) if it is not."""
        if self.is_selected(key):
            return dataclasses.replace(
                self, selected=tuple(k for k in self.selected if k != key)
            )
        return dataclasses.replace(self, selected=(key, *self.selected))

    def toggle_dropdown(self, item_id: str) -> Self:
        """Open the dropdown of an item, or close it if it is already open."""
        return dataclasses.replace(self, expanded="" if self.expanded == item_id else item_id)

    def collapse(self) -> Self:
        """Close any open dropdown."""
        if not self.expanded:
            return self
        return dataclasses.replace(self, expanded="")

    def is_selected(self, key: DecryptedKey) -> bool:
        """Check if a key is selected."""
        return key in self.selected
