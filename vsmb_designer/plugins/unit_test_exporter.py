# vsmb_designer/plugins/unit_test_exporter.py
from typing import Dict
from .api import VsmbExporterPlugin
from ..codegen import unit_test_generator


class UnitTestExporter(VsmbExporterPlugin):
    @property
    def name(self) -> str:
        return "Vitest Unit Tests"

    @property
    def file_filter(self) -> str:
        return "Test Files (*.test.ts *.test.js)"

    def export(self, model, **kwargs) -> Dict[str, str]:
        filename = unit_test_generator.test_filename(model)
        base_filename = kwargs.get("base_filename")
        if base_filename:
            filename = f"{base_filename}.test.{model.output_language.value}"
        return {filename: unit_test_generator.export_tests(model)}
