# backend/config/settings/__init__.py
import os

# DJANGO_ENV=prod|production selects hardened settings; anything else is local.
_env = os.getenv("DJANGO_ENV", "local").strip().lower()

if _env in {"prod", "production"}:
    from .prod import *  # noqa
else:
    from .local import *  # noqa
