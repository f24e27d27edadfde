"""modelrt warning categories.

These exist so users can filter/suppress modelrt warnings without
catching all UserWarning.

Keep this module lightweight and dependency-free to avoid import cycles.
"""


class ModelRtWarning(UserWarning):
    """Base warning category for all modelrt user-facing warnings."""


class ModelRtDTypeWarning(ModelRtWarning):
    """Warnings about lossy element-kind demotion (e.g. complex -> real)."""


class ModelRtPerformanceWarning(ModelRtWarning):
    """Warnings about likely performance pitfalls (e.g., sparse falling back to dense)."""


class ModelRtNumericWarning(ModelRtWarning):
    """Warnings about numerical degeneracy reported by a decomposition."""
