"""rayscene — parametric module expansion for a 2D ray optics scene."""

from rayscene.constants import APP_VERSION as __version__
