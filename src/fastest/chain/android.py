"""AndroidTester — Android widget finders on top of Tester."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from fastest.chain.lazy import Lazy, resolve
from fastest.chain.tester import Tester

if TYPE_CHECKING:
    from fastest.core.models import Config
    from fastest.remote.element import Element

TEXT_VIEW_CLASS = "android.widget.TextView"
EDIT_TEXT_CLASS = "android.widget.EditText"
BUTTON_CLASS = "android.widget.Button"


class AndroidTester(Tester):
    """Tester with finders for stock Android widgets.

    Resource ids are qualified with ``package_name``: ``<package>:id/<id>``.
    """

    def __init__(self, server_url: str | None = None, *, package_name: str, **kwargs: Any) -> None:
        super().__init__(server_url, **kwargs)
        self.package_name = package_name

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> Self:
        kwargs.setdefault("package_name", config.package_name)
        return super().from_config(config, **kwargs)

    def texts(self) -> Self:
        """Text of every TextView on screen, in document order."""

        async def collect(views: list[Element]) -> list[str]:
            return [await view.text() for view in views]

        return self.elements_by_class_name(TEXT_VIEW_CLASS).then(collect)

    def text_views(self, text: Lazy[str] | None = None) -> Self:
        return self._by_class(TEXT_VIEW_CLASS, text)

    def text_view(self, text: Lazy[str] | None = None) -> Self:
        return self.text_views(text)

    def text_inputs(self, text: Lazy[str] | None = None) -> Self:
        return self._by_class(EDIT_TEXT_CLASS, text)

    def text_input(self, text: Lazy[str] | None = None) -> Self:
        return self.text_inputs(text)

    def buttons(self, text: Lazy[str] | None = None) -> Self:
        return self._by_class(BUTTON_CLASS, text)

    def button(self, text: Lazy[str] | None = None) -> Self:
        return self.buttons(text)

    def views_by_id(self, view_id: Lazy[str]) -> Self:
        return self.elements_by_id(lambda: f"{self.package_name}:id/{resolve(view_id)}")

    def view_by_id(self, view_id: Lazy[str]) -> Self:
        return self.views_by_id(view_id)

    def _by_class(self, widget_class: str, text: Lazy[str] | None) -> Self:
        """All widgets of a class, or only those whose text equals ``text``."""
        if text is None:
            return self.elements_by_class_name(widget_class)
        return self.elements_by_xpath(lambda: f'//{widget_class}[@text="{resolve(text)}"]')
