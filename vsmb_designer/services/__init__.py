# vsmb_designer/services/__init__.py
