"""
Main NiceGUI application for the page builder.

Renders one page's scene as absolutely positioned divs, forwards pointer and
keyboard events to the editor session (src/edit), and offers a toolbar,
a layers panel and a history panel around the canvas.
"""

import logging
import sys

from nicegui import ui
from dotenv import load_dotenv

load_dotenv()

from src.config import load_settings
from src.edit.constants import RESIZE_HANDLES
from src.edit.handlers import POINTER_JS, setup_editor_handlers
from src.edit.overlay import EditOverlay
from src.edit.session import create_editor_session
from src.paths import ensure_pages_dir
from src.scene import InMemoryScene, SceneStoreError, load_scene, page_path, save_scene

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s %(message)s')
logger = logging.getLogger(__name__)

# Ensure required directories exist on startup
ensure_pages_dir()

HANDLE_SIZE = 8

HANDLE_POSITIONS = {
    'nw': ('0%', '0%'), 'n': ('50%', '0%'), 'ne': ('100%', '0%'), 'e': ('100%', '50%'),
    'se': ('100%', '100%'), 's': ('50%', '100%'), 'sw': ('0%', '100%'), 'w': ('0%', '50%'),
}


def seed_demo_scene(scene: InMemoryScene) -> None:
    """A few blocks so a fresh page has something to play with."""
    scene.create_element(40, 40, 360, 80, name='Header', background='#1e293b')
    scene.create_element(40, 160, 160, 120, name='Card A', background='#334155')
    scene.create_element(240, 180, 160, 120, name='Card B', background='#334155')
    scene.create_element(440, 150, 160, 120, name='Card C', background='#334155')
    scene.create_element(40, 340, 560, 60, name='Footer', background='#0f172a')


def open_scene(page_name: str, settings) -> InMemoryScene:
    scene = InMemoryScene(settings.canvas_width, settings.canvas_height)
    path = page_path(page_name)
    if path.exists():
        try:
            load_scene(scene, path)
            return scene
        except SceneStoreError as e:
            logger.error(f"Could not load page '{page_name}': {e}")
            ui.notify(f'Page file is corrupt, starting blank: {e}', type='negative')
    seed_demo_scene(scene)
    return scene


@ui.page('/')
def index(page: str = 'home'):
    settings = load_settings()
    scene = open_scene(page, settings)
    session = create_editor_session(scene, settings)
    state = {'page': page, 'selection_version': None}

    ui.query('body').classes('bg-slate-950 text-slate-200')

    def element_css(element) -> str:
        g = element.geometry
        selected = session.selection.is_selected(element.id)
        css = [
            'position: absolute',
            f'left: {g.x}px', f'top: {g.y}px', f'width: {g.w}px', f'height: {g.h}px',
            'box-sizing: border-box',
        ]
        if element.is_group:
            css.append('border: 1px dashed #64748b')
        if selected:
            css.append('outline: 2px solid #3b82f6')
        if element.locked:
            css.append('opacity: 0.7')
        css.extend(f'{k}: {v}' for k, v in element.style.items())
        return '; '.join(css)

    def render_element(element_id: str):
        element = scene.get_element(element_id)
        if element is None or not element.visible:
            return
        with ui.element('div').props(f'data-element-id="{element.id}"').style(element_css(element)):
            if not element.is_group and element.name:
                ui.label(element.name).classes('text-xs p-1 select-none pointer-events-none')
            for child_id in scene.get_children(element.id):
                render_element(child_id)
            if session.selection.is_selected(element.id) and session.selection.count == 1:
                for handle in RESIZE_HANDLES:
                    left, top = HANDLE_POSITIONS[handle]
                    ui.element('div').props(f'data-handle="{handle}"').style(
                        f'position: absolute; left: {left}; top: {top}; '
                        f'width: {HANDLE_SIZE}px; height: {HANDLE_SIZE}px; '
                        f'transform: translate(-50%, -50%); background: #fff; '
                        f'border: 1px solid #3b82f6; z-index: 40;'
                    )

    @ui.refreshable
    def render_scene():
        for element_id in scene.get_children(None):
            render_element(element_id)

    @ui.refreshable
    def render_layers():
        for element in scene.get_all_elements():
            depth = len(scene.get_ancestors(element.id))
            with ui.row().classes('items-center gap-1 w-full').style(f'padding-left: {depth * 12}px'):
                label = element.name or element.id
                ui.label(label).classes(
                    'text-xs grow cursor-pointer'
                    + (' text-blue-400' if session.selection.is_selected(element.id) else '')
                ).on('click', lambda e, eid=element.id: (session.selection.select_single(eid), refresh()))
                ui.button(
                    icon='lock' if element.locked else 'lock_open',
                    on_click=lambda e, el=element: handlers['run_command'](
                        'unlock_selected', [el.id]) if el.locked else lock_one(el.id),
                ).props('flat dense size=sm')
                ui.button(
                    icon='visibility' if element.visible else 'visibility_off',
                    on_click=lambda e, el=element: handlers['run_command'](
                        'show_selected', [el.id]) if not el.visible else hide_one(el.id),
                ).props('flat dense size=sm')

    @ui.refreshable
    def render_history():
        for entry in reversed(session.history.get_history()):
            classes = 'text-xs cursor-pointer' + (' text-blue-400 font-bold' if entry['is_current'] else '')
            ui.label(entry['description']).classes(classes).on(
                'click', lambda e, i=entry['index']: (session.history.jump_to_state(i),
                                                      session.selection.sync(), refresh())
            )

    def refresh():
        render_scene.refresh()
        render_layers.refresh()
        render_history.refresh()

    def lock_one(element_id: str):
        session.selection.select_single(element_id)
        handlers['run_command']('lock_selected')

    def hide_one(element_id: str):
        session.selection.select_single(element_id)
        handlers['run_command']('hide_selected')

    def save_page():
        try:
            save_scene(scene, page_path(state['page']))
            ui.notify(f"Saved page '{state['page']}'", type='positive', position='bottom')
        except OSError as e:
            ui.notify(f'Save failed: {e}', type='negative', position='bottom')

    # Overlay is created inside the canvas below; handlers need it first
    overlay = EditOverlay(settings.canvas_width, settings.canvas_height)
    handlers = setup_editor_handlers(session, state, overlay, refresh)
    session.history.events.on('changed', lambda _: render_history.refresh())

    ui.keyboard(on_key=handlers['handle_keyboard'])

    # 1. Toolbar
    with ui.row().classes('items-center gap-1 p-2 w-full bg-slate-900 border-b border-slate-700'):
        ui.label('Page Builder').classes('text-lg font-bold mr-4')
        for mode, icon in [('left', 'align_horizontal_left'), ('center-horizontal', 'align_horizontal_center'),
                           ('right', 'align_horizontal_right'), ('top', 'align_vertical_top'),
                           ('center-vertical', 'align_vertical_center'), ('bottom', 'align_vertical_bottom')]:
            ui.button(icon=icon, on_click=lambda e, m=mode: handlers['run_command']('align', m)) \
                .props('flat dense').tooltip(f'Align {mode}')
        ui.button(icon='horizontal_distribute',
                  on_click=lambda: handlers['run_command']('distribute', 'horizontal')) \
            .props('flat dense').tooltip('Distribute horizontally')
        ui.button(icon='vertical_distribute',
                  on_click=lambda: handlers['run_command']('distribute', 'vertical')) \
            .props('flat dense').tooltip('Distribute vertically')
        ui.separator().props('vertical')
        ui.button(icon='group_work', on_click=lambda: handlers['run_command']('group')) \
            .props('flat dense').tooltip('Group (Ctrl+G)')
        ui.button(icon='workspaces', on_click=lambda: handlers['run_command']('ungroup')) \
            .props('flat dense').tooltip('Ungroup (Ctrl+Shift+G)')
        ui.button(icon='content_copy', on_click=lambda: handlers['run_command']('duplicate_selected')) \
            .props('flat dense').tooltip('Duplicate (Ctrl+D)')
        ui.button(icon='delete', on_click=lambda: handlers['run_command']('delete_selected')) \
            .props('flat dense').tooltip('Delete')
        ui.button(icon='flip_to_front', on_click=lambda: handlers['run_command']('bring_to_front')) \
            .props('flat dense').tooltip('Bring to front')
        ui.button(icon='flip_to_back', on_click=lambda: handlers['run_command']('send_to_back')) \
            .props('flat dense').tooltip('Send to back')
        ui.separator().props('vertical')
        ui.button(icon='undo', on_click=lambda: handlers['run_command']('undo')) \
            .props('flat dense').tooltip('Undo (Ctrl+Z)')
        ui.button(icon='redo', on_click=lambda: handlers['run_command']('redo')) \
            .props('flat dense').tooltip('Redo (Ctrl+Shift+Z)')
        ui.separator().props('vertical')
        ui.switch('Guides', value=session.guides.enabled,
                  on_change=lambda e: session.guides.enable() if e.value else session.guides.disable()) \
            .props('dense')
        ui.switch('Grid', value=session.guides.grid_enabled,
                  on_change=lambda e: setattr(session.guides, 'grid_enabled', e.value)).props('dense')
        ui.number(value=session.guides.grid_size, min=5, max=50, step=5,
                  on_change=lambda e: session.guides.set_grid_size(e.value or 0)) \
            .props('dense outlined style="width: 70px"').tooltip('Grid size')
        ui.space()
        ui.button('Save', icon='save', on_click=save_page).props('dense color=primary')

    # 2. Workspace: layers | canvas | history
    with ui.row().classes('w-full no-wrap gap-4 p-4'):
        with ui.card().classes('w-64 bg-slate-900'):
            ui.label('Layers').classes('font-bold')
            render_layers()

        canvas = ui.element('div').style(
            f'position: relative; width: {settings.canvas_width}px; '
            f'height: {settings.canvas_height}px; background: #f8fafc; overflow: hidden; '
            f'color: #e2e8f0; user-select: none;'
        )
        with canvas:
            render_scene()
            overlay.setup()
        canvas.on('pointerdown', handlers['handle_pointer_down'], js_handler=POINTER_JS)
        canvas.on('pointermove', handlers['handle_pointer_move'], js_handler=POINTER_JS, throttle=0.016)
        canvas.on('pointerup', handlers['handle_pointer_up'], js_handler=POINTER_JS)

        with ui.card().classes('w-64 bg-slate-900'):
            ui.label('History').classes('font-bold')
            render_history()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Page Builder',
        port=8081,
        reload=not getattr(sys, 'frozen', False),
    )
