# vsmb_designer/managers/__init__.py
