# vsmb_designer/core/templates.py
"""
Built-in template gallery. Every call to `get_template` builds a fresh model
with new ids, so templates can be loaded repeatedly without collisions.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .machine_model import StateMachineModel, StateNode, Transition, StateNodeType, OutputFormat

logger = logging.getLogger(__name__)

# (label, type, context schema)
StateSpec = Tuple[str, str, Optional[Dict[str, str]]]
# (from label, to label, event)
TransitionSpec = Tuple[str, str, str]


@dataclass(frozen=True)
class TemplateDefinition:
    id: str
    name: str
    description: str
    machine_name: str
    states: Tuple[StateSpec, ...]
    transitions: Tuple[TransitionSpec, ...]
    initial_label: str


def build_template_model(machine_name: str, states: Sequence[StateSpec],
                         transitions: Sequence[TransitionSpec], initial_label: str) -> StateMachineModel:
    nodes = [
        StateNode(id=str(uuid.uuid4()), label=label, type=StateNodeType(type_),
                  context_schema=dict(schema) if schema else None)
        for label, type_, schema in states
    ]
    by_label = {n.label: n.id for n in nodes}
    initial_id = by_label.get(initial_label) or (nodes[0].id if nodes else "")
    edges = [
        Transition(str(uuid.uuid4()), by_label[source], by_label[target], event)
        for source, target, event in transitions
    ]
    return StateMachineModel(
        name=machine_name,
        initial_state_id=initial_id,
        states=tuple(nodes),
        transitions=tuple(edges),
        output_format=OutputFormat.USE_REDUCER,
    )


_ERROR = ('error', 'error', {'error': 'string'})

TEMPLATE_DEFINITIONS: Tuple[TemplateDefinition, ...] = (
    TemplateDefinition(
        'async-fetch', 'Async fetch', 'idle → loading → success | error, with RETRY', 'AsyncFetch',
        (('idle', 'idle', None), ('loading', 'loading', None),
         ('success', 'success', {'data': 'T'}), _ERROR),
        (('idle', 'loading', 'FETCH'), ('loading', 'success', 'SUCCESS'),
         ('loading', 'error', 'ERROR'), ('error', 'loading', 'RETRY')),
        'idle',
    ),
    TemplateDefinition(
        'list-with-empty', 'List with empty', 'idle, loading, success (data), empty, error', 'ListState',
        (('idle', 'idle', None), ('loading', 'loading', None),
         ('success', 'success', {'data': 'T[]'}), ('empty', 'empty', None), _ERROR),
        (('idle', 'loading', 'FETCH'), ('loading', 'success', 'SUCCESS'), ('loading', 'empty', 'EMPTY'),
         ('loading', 'error', 'ERROR'), ('error', 'loading', 'RETRY')),
        'idle',
    ),
    TemplateDefinition(
        'form-submit', 'Form submit', 'idle, submitting, success, error', 'FormSubmit',
        (('idle', 'idle', None), ('submitting', 'loading', None), ('success', 'success', None), _ERROR),
        (('idle', 'submitting', 'SUBMIT'), ('submitting', 'success', 'SUCCESS'),
         ('submitting', 'error', 'ERROR'), ('error', 'idle', 'DISMISS')),
        'idle',
    ),
    TemplateDefinition(
        'pagination', 'Pagination', 'idle, loading, success, error; PREV_PAGE, NEXT_PAGE', 'Pagination',
        (('idle', 'idle', None), ('loading', 'loading', None),
         ('success', 'success', {'data': 'T[]', 'page': 'number'}), _ERROR),
        (('idle', 'loading', 'FETCH'), ('loading', 'success', 'SUCCESS'), ('loading', 'error', 'ERROR'),
         ('success', 'loading', 'NEXT_PAGE'), ('success', 'loading', 'PREV_PAGE'), ('error', 'loading', 'RETRY')),
        'idle',
    ),
    TemplateDefinition(
        'auth-flow', 'Authentication flow', 'loggedOut, loggingIn, loggedIn, sessionExpired', 'AuthFlow',
        (('loggedOut', 'idle', None), ('loggingIn', 'loading', None),
         ('loggedIn', 'success', None), ('sessionExpired', 'error', None)),
        (('loggedOut', 'loggingIn', 'LOGIN'), ('loggingIn', 'loggedIn', 'SUCCESS'),
         ('loggingIn', 'loggedOut', 'ERROR'), ('loggedIn', 'loggedOut', 'LOGOUT'),
         ('loggedIn', 'sessionExpired', 'SESSION_EXPIRED'), ('sessionExpired', 'loggingIn', 'LOGIN')),
        'loggedOut',
    ),
    TemplateDefinition(
        'multi-step-form', 'Multi-step form', 'step1 → step2 → step3, submitting, success, error', 'MultiStepForm',
        (('step1', 'idle', None), ('step2', 'idle', None), ('step3', 'idle', None),
         ('submitting', 'loading', None), ('success', 'success', None), _ERROR),
        (('step1', 'step2', 'NEXT'), ('step2', 'step1', 'PREV'), ('step2', 'step3', 'NEXT'),
         ('step3', 'step2', 'PREV'), ('step3', 'submitting', 'SUBMIT'), ('submitting', 'success', 'SUCCESS'),
         ('submitting', 'error', 'ERROR'), ('error', 'step3', 'DISMISS')),
        'step1',
    ),
    TemplateDefinition(
        'websocket', 'WebSocket connection', 'disconnected, connecting, connected, reconnecting', 'WebSocket',
        (('disconnected', 'idle', None), ('connecting', 'loading', None),
         ('connected', 'success', None), ('reconnecting', 'loading', None)),
        (('disconnected', 'connecting', 'CONNECT'), ('connecting', 'connected', 'CONNECTED'),
         ('connecting', 'disconnected', 'ERROR'), ('connected', 'disconnected', 'DISCONNECT'),
         ('connected', 'reconnecting', 'RECONNECT'), ('reconnecting', 'connected', 'CONNECTED'),
         ('reconnecting', 'disconnected', 'ERROR')),
        'disconnected',
    ),
    TemplateDefinition(
        'file-upload', 'File upload with progress', 'idle, uploading, progress, success, error', 'FileUpload',
        (('idle', 'idle', None), ('uploading', 'loading', None),
         ('progress', 'loading', {'percent': 'number'}), ('success', 'success', None), _ERROR),
        (('idle', 'uploading', 'UPLOAD'), ('uploading', 'progress', 'PROGRESS'),
         ('progress', 'success', 'SUCCESS'), ('progress', 'error', 'ERROR'),
         ('uploading', 'error', 'ERROR'), ('error', 'idle', 'RETRY')),
        'idle',
    ),
    TemplateDefinition(
        'infinite-scroll', 'Infinite scroll', 'idle, loading, success, loadingMore, error', 'InfiniteScroll',
        (('idle', 'idle', None), ('loading', 'loading', None), ('success', 'success', {'items': 'T[]'}),
         ('loadingMore', 'loading', None), _ERROR),
        (('idle', 'loading', 'FETCH'), ('loading', 'success', 'SUCCESS'), ('loading', 'error', 'ERROR'),
         ('success', 'loadingMore', 'LOAD_MORE'), ('loadingMore', 'success', 'SUCCESS'),
         ('loadingMore', 'error', 'ERROR'), ('error', 'loading', 'RETRY')),
        'idle',
    ),
    TemplateDefinition(
        'optimistic-updates', 'Optimistic updates', 'idle, updating, success, rollback, error', 'OptimisticUpdates',
        (('idle', 'idle', None), ('updating', 'loading', None), ('success', 'success', None),
         ('rollback', 'error', None), _ERROR),
        (('idle', 'updating', 'UPDATE'), ('updating', 'success', 'SUCCESS'), ('updating', 'rollback', 'FAIL'),
         ('updating', 'error', 'ERROR'), ('rollback', 'idle', 'DISMISS'), ('error', 'idle', 'DISMISS')),
        'idle',
    ),
    TemplateDefinition(
        'shopping-cart', 'Shopping cart', 'empty, loading, ready, updating, checkout', 'ShoppingCart',
        (('empty', 'empty', None), ('loading', 'loading', None), ('ready', 'success', {'items': 'CartItem[]'}),
         ('updating', 'loading', None), ('checkout', 'success', None)),
        (('empty', 'loading', 'LOAD'), ('loading', 'ready', 'SUCCESS'), ('loading', 'empty', 'EMPTY'),
         ('ready', 'updating', 'UPDATE_ITEM'), ('updating', 'ready', 'SUCCESS'),
         ('ready', 'checkout', 'CHECKOUT'), ('checkout', 'empty', 'DONE')),
        'empty',
    ),
    TemplateDefinition(
        'video-player', 'Video player states', 'idle, loading, playing, paused, ended, error', 'VideoPlayer',
        (('idle', 'idle', None), ('loading', 'loading', None), ('playing', 'success', None),
         ('paused', 'idle', None), ('ended', 'success', None), _ERROR),
        (('idle', 'loading', 'LOAD'), ('loading', 'playing', 'READY'), ('loading', 'error', 'ERROR'),
         ('playing', 'paused', 'PAUSE'), ('paused', 'playing', 'PLAY'), ('playing', 'ended', 'END'),
         ('ended', 'playing', 'REPLAY'), ('error', 'loading', 'RETRY')),
        'idle',
    ),
)

_BY_ID = {t.id: t for t in TEMPLATE_DEFINITIONS}


def list_templates() -> List[TemplateDefinition]:
    return list(TEMPLATE_DEFINITIONS)


def get_template(template_id: str) -> Optional[StateMachineModel]:
    """Builds the model of a built-in template, or None for an unknown id."""
    definition = _BY_ID.get(template_id)
    if definition is None:
        logger.warning(f"Unknown template id '{template_id}'.")
        return None
    return build_template_model(definition.machine_name, definition.states,
                                definition.transitions, definition.initial_label)
