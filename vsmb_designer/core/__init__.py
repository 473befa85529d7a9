# vsmb_designer/core/__init__.py
