# vsmb_designer/codegen/tanstack_query_generator.py
from ..core.machine_model import StateMachineModel, OutputLanguage
from .common import render_template, is_ts, machine_name, comment_text


def query_hook_name(model: StateMachineModel) -> str:
    return f"use{machine_name(model)}Query"


def generate_tanstack_query(model: StateMachineModel, language=OutputLanguage.TS) -> str:
    """
    Generates a `useQuery` wrapper exposing an idle/loading/success/error status.

    The hook has a fixed shape. Only the machine name is taken from the
    model; its states and transitions are not translated.
    """
    context = {
        'model_name': comment_text(model.name),
        'hook_name': query_hook_name(model),
    }
    template = "tanstack_query.ts.j2" if is_ts(language) else "tanstack_query.js.j2"
    return render_template(template, context)
