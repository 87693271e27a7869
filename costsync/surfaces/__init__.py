"""Display surfaces the renderer can write into."""

from costsync.surfaces.html import HtmlSurface, HtmlTarget

__all__ = ["HtmlSurface", "HtmlTarget"]
