"""
Workbench view controller.

Holds the UI state of the page (active tab, input values, result surfaces,
trigger controls) and wires each action to the prompt builders and the
streaming renderer:

    inputs snapshot -> non-empty check -> prompt -> stream_response(surface, control)

Input values are passed in as an immutable snapshot taken when the action is
invoked; the workbench stores the latest snapshot so a page reload shows it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
import asyncio
import logging

from .checks import InputValidationError, check_classification_inputs, check_compliance_inputs
from .prompts import build_classification_prompt, build_compliance_prompt
from .renderer import GenerateFn, ResultSurface, TriggerControl, error_html, stream_response
from .schemas import SampleExtraction, TabState
from .tabular import DEFAULT_PREVIEW_ROWS, TabularParseError, extract_sample

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    COMPLIANCE = "compliance"
    CLASSIFIER = "classifier"


@dataclass(frozen=True)
class ComplianceInputs:
    schema: str = ""
    query: str = ""


@dataclass(frozen=True)
class ClassifierInputs:
    schema: str = ""
    sample: str = ""


class Workbench:
    def __init__(self, generate: GenerateFn, preview_rows: int = DEFAULT_PREVIEW_ROWS):
        self.generate = generate
        self.preview_rows = preview_rows
        self.mode = Mode.COMPLIANCE
        self.compliance = ComplianceInputs()
        self.classifier = ClassifierInputs()
        self.surfaces: Dict[Mode, ResultSurface] = {
            Mode.COMPLIANCE: ResultSurface("compliance"),
            Mode.CLASSIFIER: ResultSurface("classifier"),
        }
        self.controls: Dict[Mode, TriggerControl] = {
            Mode.COMPLIANCE: TriggerControl("check-compliance"),
            Mode.CLASSIFIER: TriggerControl("classify-data"),
        }
        self._tasks: Dict[Mode, asyncio.Task] = {}

    # --- Tab navigation ---

    def switch_tab(self, mode: Mode) -> Dict[str, TabState]:
        self.mode = Mode(mode)
        return self.tab_state()

    def tab_state(self) -> Dict[str, TabState]:
        """Exactly one tab is selected, and its content panel is the only active one."""
        return {
            m.value: TabState(selected=(m is self.mode), active=(m is self.mode))
            for m in Mode
        }

    # --- Actions ---

    def check_compliance(self, inputs: ComplianceInputs) -> Optional[asyncio.Task]:
        """Start a compliance check. Returns the stream task, or None if the inputs were rejected."""
        self.compliance = inputs
        try:
            check_compliance_inputs(inputs.schema, inputs.query)
        except InputValidationError as e:
            self.surfaces[Mode.COMPLIANCE].replace(error_html(str(e)))
            return None
        return self._start(Mode.COMPLIANCE, build_compliance_prompt(inputs.schema, inputs.query))

    def classify(self, inputs: ClassifierInputs) -> Optional[asyncio.Task]:
        """Start a field classification. Returns the stream task, or None if the inputs were rejected."""
        self.classifier = inputs
        try:
            check_classification_inputs(inputs.schema, inputs.sample)
        except InputValidationError as e:
            self.surfaces[Mode.CLASSIFIER].replace(error_html(str(e)))
            return None
        return self._start(Mode.CLASSIFIER, build_classification_prompt(inputs.schema, inputs.sample))

    def load_sample(self, filename: str, data: bytes) -> SampleExtraction:
        """Populate the classifier inputs from an uploaded file.

        On success the schema and sample inputs are overwritten. On failure the
        error goes to the classifier surface, the inputs are left as they were,
        and TabularParseError is re-raised for the caller.
        """
        try:
            extraction = extract_sample(filename, data, self.preview_rows)
        except TabularParseError as e:
            logger.info("Could not parse %s: %s", filename, e)
            self.surfaces[Mode.CLASSIFIER].replace(error_html(f"Error parsing file: {e}"))
            raise
        self.classifier = ClassifierInputs(schema=extraction.schema_text, sample=extraction.sample_text)
        return extraction

    def in_flight(self, mode: Mode) -> bool:
        task = self._tasks.get(mode)
        return task is not None and not task.done()

    def _start(self, mode: Mode, prompt: str) -> asyncio.Task:
        surface = self.surfaces[mode]
        generation = surface.begin()

        # A newer request on the same surface supersedes the old one
        previous = self._tasks.get(mode)
        if previous is not None and not previous.done():
            logger.info("Cancelling superseded %s request", mode.value)
            previous.cancel()

        task = asyncio.create_task(
            stream_response(prompt, surface, self.controls[mode], self.generate, generation)
        )
        self._tasks[mode] = task
        return task
