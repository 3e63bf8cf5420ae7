from dataclasses import dataclass
from typing import List, Optional
from ..core.types import Clef, TimeSignature
from ..core.config import DEFAULT_TICKS_PER_WHOLE, StaffGeometryConfig
from ..core.theory import StaffPositioning
from ..rhythm.duration import measure_ticks

@dataclass(frozen=True)
class MeasureBar:
    x: float
    system_index: int
    measure_index: int

class StaffGeometry:
    """
    Page geometry for a track laid out in systems of `measures_per_system` bars.

    Converts between ticks and x, and between pitches and y, for any system on
    the page. Staff steps are diatonic and referenced to the clef's bottom line.
    """
    def __init__(self, config: Optional[StaffGeometryConfig] = None,
                 time_signature: TimeSignature = TimeSignature(),
                 ticks_per_whole: int = DEFAULT_TICKS_PER_WHOLE,
                 clef: Clef = Clef.TREBLE,
                 show_tab: bool = False,
                 string_count: int = 6):
        self.config = config or StaffGeometryConfig()
        self.ticks_per_measure = measure_ticks(time_signature, ticks_per_whole)
        self.show_tab = show_tab
        self.string_count = string_count
        self.bottom_line_y = self.config.staff_top + self.config.staff_line_spacing * 4
        self.positioning = StaffPositioning(clef, self.bottom_line_y, self.config.staff_line_spacing)
        self.staff_line_positions = [self.config.staff_top + i * self.config.staff_line_spacing for i in range(5)]

    @property
    def system_height(self) -> float:
        cfg = self.config
        if self.show_tab:
            tab_height = (self.string_count - 1) * cfg.tab_line_spacing
            return cfg.tab_top + tab_height + cfg.system_padding_bottom
        return self.bottom_line_y + cfg.system_padding_bottom

    def system_top(self, system_index: int) -> float:
        return self.config.margin_top + system_index * self.system_height

    def system_index_for_measure(self, measure_index: int) -> int:
        return measure_index // self.config.measures_per_system

    def system_index_for_tick(self, tick: int) -> int:
        return self.system_index_for_measure(tick // self.ticks_per_measure)

    def tick_to_x(self, tick: int) -> float:
        cfg = self.config
        measure_index = tick // self.ticks_per_measure
        offset = tick - measure_index * self.ticks_per_measure
        measure_in_system = measure_index % cfg.measures_per_system
        return (cfg.margin_left + measure_in_system * cfg.measure_width
                + (offset / self.ticks_per_measure) * cfg.measure_width)

    def x_to_tick(self, x: float, system_index: int) -> int:
        cfg = self.config
        relative_x = x - cfg.margin_left
        measure_in_system = max(0, int(relative_x // cfg.measure_width))
        offset_x = relative_x - measure_in_system * cfg.measure_width
        measure_index = system_index * cfg.measures_per_system + measure_in_system
        tick = (offset_x / cfg.measure_width) * self.ticks_per_measure + measure_index * self.ticks_per_measure
        return max(0, round(tick))

    def pitch_to_y(self, midi: int, tick: int = 0) -> float:
        return self.system_top(self.system_index_for_tick(tick)) + self.positioning.pitch_to_y(midi)

    def y_to_pitch(self, y: float, system_index: int = 0, accidental: Optional[str] = None) -> int:
        return self.positioning.y_to_pitch(y - self.system_top(system_index), accidental)

    def staff_lines(self, system_index: int) -> List[float]:
        top = self.system_top(system_index)
        return [top + line for line in self.staff_line_positions]

    def tab_lines(self, system_index: int) -> List[float]:
        if not self.show_tab:
            return []
        top = self.system_top(system_index)
        return [top + self.config.tab_top + i * self.config.tab_line_spacing for i in range(self.string_count)]

    def measure_bars(self, system_index: int) -> List[MeasureBar]:
        cfg = self.config
        return [
            MeasureBar(
                x=cfg.margin_left + i * cfg.measure_width,
                system_index=system_index,
                measure_index=system_index * cfg.measures_per_system + i,
            )
            for i in range(cfg.measures_per_system + 1)
        ]
