"""Built-in transforms, one per asset category.

A transform is any callable ``transform(source_globs, dest_dir)``; it
reads the files matched by the (absolute) globs, writes into dest_dir and
raises TransformError on failure.

Example:
    from assetflow.transforms import transform_for
    from assetflow.rules import Category

    transform = transform_for(Category.STYLE)
    transform(["/site/src/assets/sass/*.sass"], Path("/site/build/assets/css"))
"""

from ..rules import Category
from ..task import Transform


def transform_for(category: Category) -> Transform:
    """Return the built-in transform for ``category``.

    Transforms are imported on demand so that libsass and rjsmin are only
    loaded when the matching task exists.
    """
    if category is Category.STYLE:
        from .styles import compile_styles
        return compile_styles
    if category is Category.SCRIPT:
        from .scripts import bundle_scripts
        return bundle_scripts
    if category is Category.HTML:
        from .html import assemble_html
        return assemble_html
    from .copy import copy_assets
    return copy_assets


__all__ = [
    'transform_for',
]
