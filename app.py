# app.py
from __future__ import annotations
from typing import Callable, Dict, Optional, Type
from textual.app import App
from textual.screen import Screen
from exceptions import ProductNotFoundError
from sequencer import ABORT, TERMINALS, SequenceGraph, Sequencer
from state import WizardState
from logger import log

from screens.s01_scenario import ProductNotSupportedScreen, ScenarioSelectionScreen
from screens.s02_comm_layer import CommLayerScreen
from screens.s03_join_cluster import JoinClusterScreen
from screens.s04_members import MembersScreen
from screens.s05_fencing import FencingScreen
from screens.s06_watchdog import WatchdogScreen
from screens.s07_ntp import NtpScreen
from screens.s08_overview import OverviewScreen
from screens.s09_installation import InstallationScreen

DEFAULT_PRODUCT = "HANA"
DEBUG_SCENARIO = ("HANA", "Performance-optimized")


def product_check(state: WizardState) -> str:
    product_id = state.product_id or DEFAULT_PRODUCT
    try:
        state.set_product(product_id)
    except ProductNotFoundError as e:
        log.warning("%s", e)
        return "unknown"
    return product_id.lower()


def debug_run(state: WizardState) -> str:
    product_id, scenario = DEBUG_SCENARIO
    state.set_product(product_id)
    state.set_scenario(scenario)
    if state.use_sample_values:
        state.load_sample_values()
    return "general_setup"


# Steps that need no user interaction: they return their transition key directly.
AUTOMATIC_STEPS: Dict[str, Callable[[WizardState], str]] = {
    "product_check": product_check,
    "debug_run": debug_run,
}

SCREENS: Dict[str, Type[Screen]] = {
    "product_not_supported": ProductNotSupportedScreen,
    "scenario_selection": ScenarioSelectionScreen,
    "configure_network": CommLayerScreen,
    "join_cluster": JoinClusterScreen,
    "configure_members": MembersScreen,
    "fencing": FencingScreen,
    "watchdog": WatchdogScreen,
    "ntp": NtpScreen,
    "general_setup": OverviewScreen,
    "installation": InstallationScreen,
}


class HAWizard(App):
    """HA cluster setup wizard."""

    CSS = """
    Screen {
        background: $surface;
    }
    .title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    .section {
        height: auto;
        border: round $primary;
        padding: 0 1;
        margin-bottom: 1;
    }
    .ring_row, .node_row, #node_buttons, #device_buttons, #module_buttons {
        height: auto;
    }
    .ring_row Input, .node_row Input {
        width: 1fr;
    }
    .hidden {
        display: none;
    }
    #form {
        margin: 1 2;
    }
    #nav_buttons {
        dock: bottom;
        height: 3;
        align: center middle;
        margin: 1 2;
    }
    Button {
        margin: 0 1;
    }
    #err_msg {
        margin-top: 1;
        color: $error;
    }
    DataTable {
        height: 8;
    }
    Input {
        margin-bottom: 1;
    }
    """

    def __init__(
        self,
        state: Optional[WizardState] = None,
        debug: bool = False,
        graph: Optional[SequenceGraph] = None,
    ) -> None:
        super().__init__()
        self.state = state or WizardState(debug=debug)
        self.graph = graph or SequenceGraph.from_yaml()
        self.graph.validate(known_steps=set(AUTOMATIC_STEPS) | set(SCREENS))
        self.sequencer = Sequencer(self.graph, debug=debug or self.state.debug)
        self._screen_shown = False
        log.info("HAWizard started (debug=%s)", self.sequencer.debug)

    async def on_mount(self) -> None:
        self._enter(self.sequencer.start())

    def finish_step(self, key: str) -> None:
        self._enter(self.sequencer.advance(key))

    def _enter(self, step: str) -> None:
        while step in AUTOMATIC_STEPS:
            step = self.sequencer.advance(AUTOMATIC_STEPS[step](self.state))
        if step in TERMINALS:
            log.info("Wizard finished with %s", step)
            self.exit(step)
            return
        screen = SCREENS[step]()
        if self._screen_shown:
            self.switch_screen(screen)
        else:
            self._screen_shown = True
            self.push_screen(screen)


def run_wizard(state: WizardState, debug: bool = False) -> str:
    result = HAWizard(state, debug=debug).run()
    return result or ABORT
