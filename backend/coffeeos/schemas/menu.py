"""Menu and menu item schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from coffeeos.schemas.common import DocumentModel, Money, utcnow


class OptionChoice(DocumentModel):
    name: str
    additional_price: Money = Field(default=0, ge=0)


class OptionGroup(DocumentModel):
    """A configurable option of a menu item, e.g. size or milk."""

    name: str
    choices: List[OptionChoice] = []

    def find_choice(self, choice_name: str) -> Optional[OptionChoice]:
        for choice in self.choices:
            if choice.name == choice_name:
                return choice
        return None


class Menu(DocumentModel):
    id: str
    tenant_id: str
    name: str
    version: int = 1
    is_active: bool = False
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class MenuItem(DocumentModel):
    id: str
    menu_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    category: str
    price: Money = Field(..., ge=0)
    unit: str = "cup"
    image_url: Optional[str] = None
    available: bool = True
    tags: List[str] = []
    display_order: Optional[int] = None
    options: List[OptionGroup] = []
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def find_option(self, group_name: str) -> Optional[OptionGroup]:
        for group in self.options:
            if group.name == group_name:
                return group
        return None


class ActiveMenuResponse(DocumentModel):
    menu: Menu
    items: List[MenuItem]
    categories: List[str]
