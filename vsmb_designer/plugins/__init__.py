# vsmb_designer/plugins/__init__.py
