# vsmb_designer/utils/__init__.py
