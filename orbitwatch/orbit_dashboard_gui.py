"""
OrbitWatch GUI - orbital situational-awareness dashboard
Hand-projected 3D globe with tracked targets, ground-station links,
telemetry, pass prediction and intelligence reports.
Uses PyQt5 for the GUI and Matplotlib (pixel-space Axes) as the 2D surface.
"""

import argparse
import logging
import os
import sys
import threading
import time
from datetime import datetime, timezone

import requests
from PyQt5.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QLineEdit, QSlider, QPushButton, QGroupBox, QFormLayout,
    QCheckBox, QComboBox, QDoubleSpinBox, QListWidget, QListWidgetItem,
    QDialog, QDialogButtonBox, QPlainTextEdit, QTextEdit, QFileDialog,
    QMessageBox, QStatusBar, QFrame, QRadioButton, QButtonGroup
)
from PyQt5.QtCore import Qt, QTimer, QObject, pyqtSignal
from PyQt5.QtGui import QFont
from matplotlib.backends.backend_qt5agg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure

from orbitwatch.config import (
    TIME_SPEED_DEFAULT, TIME_SPEED_MAX, TIME_SPEED_MIN, TLE_DOWNLOAD_URL, VIEW
)
from orbitwatch.frames import earliest_pass, geo_position
from orbitwatch.intel_service import IntelReportController, Language
from orbitwatch.orbital_mechanics import InvalidElementsError, OrbitalMechanics
from orbitwatch.projector import Camera
from orbitwatch.scene_renderer import (
    MatplotlibSceneExecutor, SceneSnapshot, StarField, build_scene
)
from orbitwatch.sim_clock import SimulationClock, TimeMode, wall_clock_ms
from orbitwatch.targets import (
    RiskLevel, TargetRegistry, TargetType, load_ground_stations, load_initial_targets
)

logger = logging.getLogger(__name__)

PASS_REFRESH_MS = 1000.0


def format_utc(timestamp_ms):
    return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S UTC")


class _Signals(QObject):
    """Cross-thread hand-off back to the GUI thread."""
    intel_ready = pyqtSignal(int, str)
    tle_downloaded = pyqtSignal(str)
    download_failed = pyqtSignal(str)


class AddTargetDialog(QDialog):
    """Name and category for a new target on a random low orbit."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Add Target")
        layout = QFormLayout(self)

        self.name_input = QLineEdit()
        self.name_input.setPlaceholderText("UNNAMED")
        self.type_combo = QComboBox()
        for t in TargetType:
            self.type_combo.addItem(t.value, t)

        layout.addRow("Name:", self.name_input)
        layout.addRow("Type:", self.type_combo)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def values(self):
        return self.name_input.text().strip() or None, self.type_combo.currentData()


class EditTargetDialog(QDialog):
    """
    Edits a TargetDraft in place. Semi-major axis and mean motion stay
    coupled: changing one re-derives the other.
    """

    def __init__(self, draft, target_name, parent=None):
        super().__init__(parent)
        self.draft = draft
        self.setWindowTitle(f"Edit {target_name} ({draft.target_id})")
        self._syncing = False

        layout = QFormLayout(self)
        e = draft.elements

        def spin(lo, hi, decimals, value, step=1.0):
            box = QDoubleSpinBox()
            box.setRange(lo, hi)
            box.setDecimals(decimals)
            box.setSingleStep(step)
            box.setValue(value)
            return box

        self.a_input = spin(100.0, 500000.0, 2, e.semi_major_axis, 10.0)
        self.n_input = spin(0.001, 20.0, 8, e.mean_motion, 0.01)
        self.e_input = spin(0.0, 0.999, 7, e.eccentricity, 0.001)
        self.i_input = spin(0.0, 180.0, 4, e.inclination)
        self.raan_input = spin(0.0, 360.0, 4, e.raan)
        self.argp_input = spin(0.0, 360.0, 4, e.arg_perigee)
        self.m0_input = spin(0.0, 360.0, 4, e.mean_anomaly)

        self.risk_combo = QComboBox()
        for r in RiskLevel:
            self.risk_combo.addItem(r.value, r)
        self.risk_combo.setCurrentIndex(list(RiskLevel).index(draft.risk))
        self.group_input = QLineEdit(draft.group or "")

        layout.addRow("Semi-major axis (km):", self.a_input)
        layout.addRow("Mean motion (rev/day):", self.n_input)
        layout.addRow("Eccentricity:", self.e_input)
        layout.addRow("Inclination (°):", self.i_input)
        layout.addRow("RAAN (°):", self.raan_input)
        layout.addRow("Arg. of perigee (°):", self.argp_input)
        layout.addRow("Mean anomaly (°):", self.m0_input)
        layout.addRow("Risk:", self.risk_combo)
        layout.addRow("Group:", self.group_input)

        self.a_input.valueChanged.connect(self.on_sma_changed)
        self.n_input.valueChanged.connect(self.on_mean_motion_changed)

        buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def on_sma_changed(self, value):
        if self._syncing:
            return
        self._syncing = True
        self.draft.elements.set_semi_major_axis(value)
        self.n_input.setValue(self.draft.elements.mean_motion)
        self._syncing = False

    def on_mean_motion_changed(self, value):
        if self._syncing:
            return
        self._syncing = True
        self.draft.elements.set_mean_motion(value)
        self.a_input.setValue(self.draft.elements.semi_major_axis)
        self._syncing = False

    def apply_to_draft(self):
        e = self.draft.elements
        e.eccentricity = self.e_input.value()
        e.inclination = self.i_input.value()
        e.raan = self.raan_input.value()
        e.arg_perigee = self.argp_input.value()
        e.mean_anomaly = self.m0_input.value()
        self.draft.risk = self.risk_combo.currentData()
        self.draft.group = self.group_input.text().strip() or None
        return self.draft


class PasteTLEDialog(QDialog):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Import TLE")
        self.resize(560, 360)
        layout = QVBoxLayout(self)

        layout.addWidget(QLabel("Paste two-line element sets (optional name line before each):"))
        self.text_input = QPlainTextEdit()
        self.text_input.setFont(QFont("Courier New", 9))
        layout.addWidget(self.text_input)

        type_layout = QHBoxLayout()
        type_layout.addWidget(QLabel("Import as:"))
        self.type_combo = QComboBox()
        for t in TargetType:
            self.type_combo.addItem(t.value, t)
        type_layout.addWidget(self.type_combo)
        type_layout.addStretch()
        layout.addLayout(type_layout)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def values(self):
        return self.text_input.toPlainText(), self.type_combo.currentData()


class OrbitDashboardGUI(QMainWindow):
    """Main window: controls on the left, globe in the centre, details on the right"""

    def __init__(self, speed=TIME_SPEED_DEFAULT, mode=TimeMode.REALTIME, tle_file=None,
                 show_orbits=True, language=Language.EN):
        super().__init__()
        self.setWindowTitle("OrbitWatch - Orbital Situational Awareness")
        self.setGeometry(100, 100, 1600, 900)

        # Model state
        self.registry = TargetRegistry(load_initial_targets())
        self.stations = load_ground_stations()
        self.camera = Camera()
        self.clock = SimulationClock(mode=mode, speed=speed)
        self.stars = StarField()
        self.show_orbits = show_orbits
        self.language = language
        self.type_filter = None

        self._last_frame = time.monotonic()
        self._last_pass_refresh = None
        self._pass_target_id = None
        self.scene = None

        self.signals = _Signals()
        self.intel = IntelReportController(dispatch=self.signals.intel_ready.emit,
                                           on_update=self.on_intel_update)
        self.signals.intel_ready.connect(self.intel.deliver)
        self.signals.tle_downloaded.connect(self.on_tle_downloaded)
        self.signals.download_failed.connect(self.on_download_failed)

        self.init_ui()

        if tle_file:
            self.import_tle_file(tle_file)

        # Animation loop
        self.frame_timer = QTimer()
        self.frame_timer.timeout.connect(self.update_frame)
        self.frame_timer.setInterval(VIEW["frame_interval_ms"])
        self.frame_timer.start()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def init_ui(self):
        """Initialize the user interface"""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QHBoxLayout(central_widget)
        main_layout.setSpacing(8)
        main_layout.setContentsMargins(8, 8, 8, 8)

        # Left panel - controls and target list
        left_panel = QFrame()
        left_panel.setFrameStyle(QFrame.StyledPanel)
        left_panel.setMaximumWidth(300)
        left_layout = QVBoxLayout(left_panel)
        left_layout.addWidget(self.create_time_group())
        left_layout.addWidget(self.create_target_group(), 1)
        left_layout.addWidget(self.create_tle_group())
        left_layout.addWidget(self.create_display_group())

        # Centre - time HUD + globe
        centre_layout = QVBoxLayout()
        self.hud_label = QLabel()
        self.hud_label.setFont(QFont("Courier New", 10))
        centre_layout.addWidget(self.hud_label)

        self.fig = Figure(figsize=(8, 8), dpi=100)
        self.ax = self.fig.add_axes([0, 0, 1, 1])
        self.executor = MatplotlibSceneExecutor(self.ax)
        self.canvas = FigureCanvas(self.fig)
        self.canvas.mpl_connect('button_press_event', self.on_press)
        self.canvas.mpl_connect('motion_notify_event', self.on_motion)
        self.canvas.mpl_connect('button_release_event', self.on_release)
        self.canvas.mpl_connect('scroll_event', self.on_scroll)
        self.canvas.mpl_connect('figure_leave_event', self.on_leave)
        self.canvas.mpl_connect('resize_event', lambda event: self.render_scene())
        centre_layout.addWidget(self.canvas, 1)

        # Right panel - telemetry, passes, intelligence
        right_panel = QFrame()
        right_panel.setFrameStyle(QFrame.StyledPanel)
        right_panel.setMaximumWidth(340)
        right_layout = QVBoxLayout(right_panel)
        right_layout.addWidget(self.create_telemetry_group())
        right_layout.addWidget(self.create_pass_group())
        right_layout.addWidget(self.create_intel_group(), 1)

        main_layout.addWidget(left_panel)
        main_layout.addLayout(centre_layout, 1)
        main_layout.addWidget(right_panel)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage(f"Tracking {len(self.registry)} targets from "
                                    f"{len(self.stations)} ground stations")

        self.refresh_target_list()
        self.update_details()

    def create_time_group(self):
        group = QGroupBox("Time Control")
        layout = QVBoxLayout(group)

        mode_layout = QHBoxLayout()
        self.realtime_radio = QRadioButton("Real-time")
        self.sim_radio = QRadioButton("Simulation")
        self.mode_buttons = QButtonGroup(self)
        self.mode_buttons.addButton(self.realtime_radio)
        self.mode_buttons.addButton(self.sim_radio)
        if self.clock.mode == TimeMode.REALTIME:
            self.realtime_radio.setChecked(True)
        else:
            self.sim_radio.setChecked(True)
        self.realtime_radio.toggled.connect(self.on_mode_changed)
        mode_layout.addWidget(self.realtime_radio)
        mode_layout.addWidget(self.sim_radio)
        layout.addLayout(mode_layout)

        speed_layout = QHBoxLayout()
        speed_layout.addWidget(QLabel("Speed:"))
        self.speed_slider = QSlider(Qt.Horizontal)
        self.speed_slider.setRange(TIME_SPEED_MIN, TIME_SPEED_MAX)
        self.speed_slider.setValue(int(self.clock.speed))
        self.speed_slider.valueChanged.connect(self.on_speed_changed)
        speed_layout.addWidget(self.speed_slider)
        self.speed_label = QLabel(f"{int(self.clock.speed)}x")
        self.speed_label.setMinimumWidth(50)
        speed_layout.addWidget(self.speed_label)
        layout.addLayout(speed_layout)

        self.now_button = QPushButton("⟲ Reset to Now")
        self.now_button.clicked.connect(lambda: self.clock.set_time(wall_clock_ms()))
        layout.addWidget(self.now_button)

        self.update_time_controls()
        return group

    def create_target_group(self):
        group = QGroupBox("Targets")
        layout = QVBoxLayout(group)

        self.filter_combo = QComboBox()
        self.filter_combo.addItem("ALL", None)
        for t in TargetType:
            self.filter_combo.addItem(t.value, t)
        self.filter_combo.currentIndexChanged.connect(self.on_filter_changed)
        layout.addWidget(self.filter_combo)

        self.target_list = QListWidget()
        self.target_list.itemSelectionChanged.connect(self.on_list_selection)
        layout.addWidget(self.target_list, 1)

        button_layout = QHBoxLayout()
        self.add_button = QPushButton("+ Add")
        self.add_button.clicked.connect(self.add_target)
        self.edit_button = QPushButton("Edit")
        self.edit_button.clicked.connect(self.edit_target)
        self.remove_button = QPushButton("Remove")
        self.remove_button.clicked.connect(self.remove_target)
        button_layout.addWidget(self.add_button)
        button_layout.addWidget(self.edit_button)
        button_layout.addWidget(self.remove_button)
        layout.addLayout(button_layout)
        return group

    def create_tle_group(self):
        group = QGroupBox("TLE Data")
        layout = QVBoxLayout(group)

        self.load_btn = QPushButton("Load TLE File")
        self.load_btn.clicked.connect(self.load_tle_file)
        layout.addWidget(self.load_btn)

        self.paste_btn = QPushButton("Paste TLE")
        self.paste_btn.clicked.connect(self.paste_tle)
        layout.addWidget(self.paste_btn)

        self.download_btn = QPushButton("Download Latest TLE")
        self.download_btn.clicked.connect(self.download_tle)
        layout.addWidget(self.download_btn)
        return group

    def create_display_group(self):
        group = QGroupBox("Display")
        layout = QFormLayout(group)

        self.orbits_checkbox = QCheckBox("Show orbits")
        self.orbits_checkbox.setChecked(self.show_orbits)
        self.orbits_checkbox.toggled.connect(lambda v: setattr(self, 'show_orbits', v))
        layout.addRow(self.orbits_checkbox)

        self.language_combo = QComboBox()
        for lang in Language:
            self.language_combo.addItem(lang.value, lang)
        self.language_combo.setCurrentIndex(list(Language).index(self.language))
        self.language_combo.currentIndexChanged.connect(self.on_language_changed)
        layout.addRow("Report language:", self.language_combo)
        return group

    def create_telemetry_group(self):
        group = QGroupBox("Telemetry")
        layout = QFormLayout(group)
        self.telemetry_labels = {}
        for key, title in (('id', "ID:"), ('name', "Name:"), ('type', "Type / Risk:"),
                           ('inc', "Inclination:"), ('ecc', "Eccentricity:"),
                           ('period', "Period:"), ('peri_apo', "Perigee / Apogee:"),
                           ('latlon', "Lat / Lon:"), ('alt', "Altitude:"),
                           ('vel', "Velocity:"), ('note', "Notes:"),
                           ('updated', "Updated:")):
            label = QLabel("-")
            label.setFont(QFont("Courier New", 9))
            layout.addRow(title, label)
            self.telemetry_labels[key] = label
        return group

    def create_pass_group(self):
        group = QGroupBox("Next Pass")
        layout = QVBoxLayout(group)
        self.pass_label = QLabel("No target selected")
        self.pass_label.setWordWrap(True)
        layout.addWidget(self.pass_label)
        return group

    def create_intel_group(self):
        group = QGroupBox("Intelligence Report")
        layout = QVBoxLayout(group)
        self.intel_text = QTextEdit()
        self.intel_text.setReadOnly(True)
        layout.addWidget(self.intel_text, 1)
        self.intel_button = QPushButton("Regenerate")
        self.intel_button.clicked.connect(self.request_report)
        layout.addWidget(self.intel_button)
        return group

    # ------------------------------------------------------------------
    # Animation loop
    # ------------------------------------------------------------------

    def update_frame(self):
        """Advance the clock, redraw the globe and refresh the panels"""
        now = time.monotonic()
        delta_ms = (now - self._last_frame) * 1000.0
        self._last_frame = now

        self.clock.tick(delta_ms)
        self.render_scene()
        self.update_hud()
        self.update_details()

    def surface_size(self):
        bbox = self.fig.bbox
        return bbox.width, bbox.height

    def snapshot(self):
        width, height = self.surface_size()
        return SceneSnapshot(
            targets=tuple(self.registry.filtered(self.type_filter)),
            stations=tuple(self.stations),
            camera=self.camera.snapshot(),
            time_ms=self.clock.time_ms,
            selected_id=self.registry.selected_id,
            show_orbits=self.show_orbits,
            width=width,
            height=height,
        )

    def render_scene(self):
        self.scene = build_scene(self.snapshot(), stars=self.stars)
        self.executor.execute(self.scene)
        self.canvas.draw_idle()

    def update_hud(self):
        speed = "1x" if self.clock.mode == TimeMode.REALTIME else f"{int(self.clock.speed)}x"
        self.hud_label.setText(f"[{self.clock.mode.value}]  {format_utc(self.clock.time_ms)}"
                               f"  SPEED {speed}")

    def update_time_controls(self):
        simulating = self.clock.mode == TimeMode.SIMULATION
        self.speed_slider.setEnabled(simulating)
        self.now_button.setEnabled(simulating)

    # ------------------------------------------------------------------
    # Details panels
    # ------------------------------------------------------------------

    def update_details(self):
        target = self.registry.selected
        labels = self.telemetry_labels
        if target is None:
            for label in labels.values():
                label.setText("-")
            self.pass_label.setText("No target selected")
            self._pass_target_id = None
            return

        e = target.elements
        details = OrbitalMechanics.orbital_details(e)
        geo = geo_position(e, self.clock.time_ms)

        labels['id'].setText(target.id)
        labels['name'].setText(target.name)
        labels['type'].setText(f"{target.type.value} / {target.risk.value}")
        labels['inc'].setText(f"{e.inclination:.2f}°")
        labels['ecc'].setText(f"{e.eccentricity:.5f}")
        labels['period'].setText(f"{details['period_min']:.1f} min")
        labels['peri_apo'].setText(f"{details['perigee']:.0f} / {details['apogee']:.0f} km")
        labels['latlon'].setText(f"{geo.lat:+.2f}° / {geo.lon:+.2f}°")
        labels['alt'].setText(f"{geo.alt:.1f} km")
        labels['vel'].setText(f"{geo.velocity:.3f} km/s")
        labels['note'].setText(target.description or "-")
        labels['updated'].setText(target.last_update[:19].replace('T', ' ') + " UTC")

        now = wall_clock_ms()
        if (self._pass_target_id != target.id or self._last_pass_refresh is None
                or now - self._last_pass_refresh > PASS_REFRESH_MS):
            self._pass_target_id = target.id
            self._last_pass_refresh = now
            self.update_pass_prediction(target)

    def update_pass_prediction(self, target):
        nxt = earliest_pass(self.stations, target.elements, self.clock.time_ms)
        if nxt is None:
            self.pass_label.setText("No pass above the mask within 12 h")
            return
        minutes = (nxt.time_ms - self.clock.time_ms) / 60000.0
        self.pass_label.setText(f"{nxt.station.name}\n{format_utc(nxt.time_ms)}\n"
                                f"T+{minutes:.0f} min, elevation {nxt.elevation:.1f}°")

    def on_intel_update(self, controller):
        if controller.loading:
            self.intel_text.setPlainText("Establishing uplink...")
        else:
            self.intel_text.setPlainText(controller.text)

    def request_report(self):
        target = self.registry.selected
        if target is None:
            self.intel.clear()
            return
        self.intel.request(target, self.language)

    # ------------------------------------------------------------------
    # Selection and target list
    # ------------------------------------------------------------------

    def refresh_target_list(self):
        self.target_list.blockSignals(True)
        self.target_list.clear()
        for target in self.registry.filtered(self.type_filter):
            item = QListWidgetItem(f"{target.id}  {target.name}  [{target.risk.value}]")
            item.setData(Qt.UserRole, target.id)
            self.target_list.addItem(item)
            if target.id == self.registry.selected_id:
                item.setSelected(True)
        self.target_list.blockSignals(False)

    def select_target(self, target_id):
        previous = self.registry.selected_id
        self.registry.select(target_id)
        if self.registry.selected_id == previous:
            return
        self.refresh_target_list()
        self._pass_target_id = None
        self.request_report()
        self.update_details()
        if self.registry.selected is not None:
            self.status_bar.showMessage(f"Selected {self.registry.selected.name}")

    def on_list_selection(self):
        items = self.target_list.selectedItems()
        self.select_target(items[0].data(Qt.UserRole) if items else None)

    def on_filter_changed(self):
        self.type_filter = self.filter_combo.currentData()
        selected = self.registry.selected
        if selected is not None and self.type_filter is not None \
                and selected.type != self.type_filter:
            self.select_target(None)
        self.refresh_target_list()

    def add_target(self):
        dialog = AddTargetDialog(self)
        if dialog.exec_() != QDialog.Accepted:
            return
        name, target_type = dialog.values()
        target = self.registry.add_random(name=name, target_type=target_type)
        self.refresh_target_list()
        self.status_bar.showMessage(f"Added {target.name} ({target.id})")

    def edit_target(self):
        target = self.registry.selected
        if target is None:
            QMessageBox.warning(self, "Warning", "Select a target to edit first.")
            return
        draft = self.registry.begin_edit(target.id)
        dialog = EditTargetDialog(draft, target.name, self)
        if dialog.exec_() != QDialog.Accepted:
            return
        try:
            self.registry.commit_edit(dialog.apply_to_draft())
        except (InvalidElementsError, KeyError) as e:
            QMessageBox.critical(self, "Error", f"Edit rejected: {e}")
            return
        self._pass_target_id = None
        self.refresh_target_list()
        self.status_bar.showMessage(f"Updated {target.name}")

    def remove_target(self):
        target = self.registry.selected
        if target is None:
            return
        self.registry.remove(target.id)
        self.intel.clear()
        self.refresh_target_list()
        self.update_details()
        self.status_bar.showMessage(f"Removed {target.name}")

    # ------------------------------------------------------------------
    # TLE input
    # ------------------------------------------------------------------

    def import_tle_text(self, text, target_type=TargetType.SATELLITE, source="TLE"):
        result = self.registry.import_tle(text, target_type)
        self.refresh_target_list()
        msg = f"Imported {len(result.added)} targets from {source}"
        if result.failed:
            msg += f", skipped {len(result.failed)} malformed"
        self.status_bar.showMessage(msg)
        return result

    def import_tle_file(self, filepath, target_type=TargetType.SATELLITE):
        try:
            with open(filepath, 'r') as f:
                text = f.read()
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Failed to load TLE file: {e}")
            return None
        return self.import_tle_text(text, target_type, os.path.basename(filepath))

    def load_tle_file(self):
        """Load TLE data from file."""
        filepath, _ = QFileDialog.getOpenFileName(
            self, "Select TLE File", os.getcwd(),
            "Text files (*.txt);;TLE files (*.tle);;All files (*.*)"
        )
        if filepath:
            self.import_tle_file(filepath)

    def paste_tle(self):
        dialog = PasteTLEDialog(self)
        if dialog.exec_() != QDialog.Accepted:
            return
        text, target_type = dialog.values()
        self.import_tle_text(text, target_type, "pasted text")

    def download_tle(self):
        """Download latest TLE data."""
        self.status_bar.showMessage("Downloading TLE data...")
        self.download_btn.setEnabled(False)

        def download_thread():
            try:
                response = requests.get(TLE_DOWNLOAD_URL, timeout=30)
                response.raise_for_status()
            except requests.RequestException as e:
                logger.error(f"TLE download failed: {e}")
                self.signals.download_failed.emit(str(e))
                return
            self.signals.tle_downloaded.emit(response.text)

        threading.Thread(target=download_thread, daemon=True).start()

    def on_tle_downloaded(self, text):
        self.download_btn.setEnabled(True)
        self.import_tle_text(text, TargetType.SATELLITE, "download")

    def on_download_failed(self, message):
        self.download_btn.setEnabled(True)
        self.status_bar.showMessage("TLE download failed")
        QMessageBox.critical(self, "Error", f"Download failed: {message}")

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def on_mode_changed(self):
        mode = TimeMode.REALTIME if self.realtime_radio.isChecked() else TimeMode.SIMULATION
        self.clock.set_mode(mode)
        self.update_time_controls()

    def on_speed_changed(self, value):
        self.clock.set_speed(value)
        self.speed_label.setText(f"{int(self.clock.speed)}x")

    def on_language_changed(self):
        self.language = self.language_combo.currentData()
        if self.registry.selected is not None:
            self.request_report()

    # ------------------------------------------------------------------
    # Canvas interaction
    # ------------------------------------------------------------------

    def _screen_xy(self, event):
        """Matplotlib display coords (origin bottom-left) to screen pixels (y down)."""
        return event.x, self.fig.bbox.height - event.y

    def on_press(self, event):
        if event.button != 1:
            return
        self.camera.pointer_down(*self._screen_xy(event))

    def on_motion(self, event):
        if self.camera.dragging:
            self.camera.pointer_move(*self._screen_xy(event))

    def on_release(self, event):
        if event.button != 1 or not self.camera.dragging:
            return
        x, y = self._screen_xy(event)
        moved = self.camera.moved_since_press(x, y)
        self.camera.pointer_up()
        if not moved:
            # Click: pick a marker, or clear the selection on empty space
            self.select_target(self.scene.hit_test(x, y) if self.scene is not None else None)

    def on_scroll(self, event):
        # One wheel notch is ~100 units of browser-style deltaY; "up" zooms in
        self.camera.wheel(-event.step * 100.0)

    def on_leave(self, event):
        self.camera.pointer_leave()

    def closeEvent(self, event):
        """Handle window close."""
        self.frame_timer.stop()
        self.intel.clear()
        event.accept()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="OrbitWatch orbital situational-awareness dashboard")
    parser.add_argument("--speed", type=float, default=TIME_SPEED_DEFAULT,
                        help=f"Simulation speed multiplier ({TIME_SPEED_MIN}-{TIME_SPEED_MAX})")
    parser.add_argument("--mode", choices=[m.value for m in TimeMode], default=TimeMode.REALTIME.value,
                        help="Start in real-time or accelerated simulation mode")
    parser.add_argument("--tle-file", help="TLE file to import at startup")
    parser.add_argument("--no-orbits", action="store_true", help="Hide orbit paths")
    parser.add_argument("--language", choices=[lang.value for lang in Language],
                        default=Language.EN.value, help="Intelligence report language")
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    if sys.platform.startswith('win'):
        QApplication.setAttribute(Qt.AA_EnableHighDpiScaling, True)
        QApplication.setAttribute(Qt.AA_UseHighDpiPixmaps, True)
    app = QApplication(sys.argv[:1])
    if sys.platform.startswith('win'):
        app.setFont(QFont('Segoe UI', 9))

    window = OrbitDashboardGUI(
        speed=args.speed,
        mode=TimeMode(args.mode),
        tle_file=args.tle_file,
        show_orbits=not args.no_orbits,
        language=Language(args.language),
    )
    window.show()
    sys.exit(app.exec_())


if __name__ == '__main__':
    main()
