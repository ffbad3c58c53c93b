"""Version models and PKGBUILD version parsing."""
