"""
Configuration management for the landmark classification pipeline.
"""
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int


@dataclass
class HandsDetectorConfig:
    """MediaPipe Hands settings used for static (two-hand) detection."""
    max_num_hands: int
    model_complexity: int
    min_detection_confidence: float
    min_tracking_confidence: float


@dataclass
class HolisticDetectorConfig:
    """MediaPipe Holistic settings used for dynamic (pose + hands) detection."""
    model_complexity: int
    min_detection_confidence: float
    min_tracking_confidence: float


@dataclass
class DetectorsConfig:
    """Landmark detector configuration, one entry per gesture family."""
    hands: HandsDetectorConfig
    holistic: HolisticDetectorConfig


@dataclass
class ModelsConfig:
    """Locations of the classifier models and their label maps."""
    static_model: Path
    dynamic_model: Path
    static_labels: Path
    dynamic_labels: Path


@dataclass
class StabilizerConfig:
    """Static prediction stabilizer settings."""
    buffer_size: int
    confidence_threshold: float


@dataclass
class WindowConfig:
    """Dynamic temporal window settings."""
    sequence_length: int


@dataclass
class SentenceConfig:
    """Sentence assembly settings."""
    no_hand_threshold: int
    gap_marker: str
    display_aliases: Dict[str, str] = field(default_factory=dict)


@dataclass
class PracticeConfig:
    """Practice outcome policy."""
    low_confidence_floor: float
    inference_timeout_s: float


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    mirror: bool
    window_name: str


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    detectors: DetectorsConfig
    models: ModelsConfig
    stabilizer: StabilizerConfig
    window: WindowConfig
    sentence: SentenceConfig
    practice: PracticeConfig
    display: DisplayConfig
    logging: LoggingConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    return _dict_to_config(data, base_dir=config_path.parent)


def _resolve(base_dir: Path, value: str) -> Path:
    """Resolve a possibly relative resource path against the config directory."""
    p = Path(value)
    return p if p.is_absolute() else base_dir / p


def _dict_to_config(data: Dict[str, Any], base_dir: Path = Path(".")) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps']
    )

    hands_data = data['detectors']['hands']
    holistic_data = data['detectors']['holistic']
    detectors = DetectorsConfig(
        hands=HandsDetectorConfig(
            max_num_hands=hands_data['max_num_hands'],
            model_complexity=hands_data['model_complexity'],
            min_detection_confidence=hands_data['min_detection_confidence'],
            min_tracking_confidence=hands_data['min_tracking_confidence']
        ),
        holistic=HolisticDetectorConfig(
            model_complexity=holistic_data['model_complexity'],
            min_detection_confidence=holistic_data['min_detection_confidence'],
            min_tracking_confidence=holistic_data['min_tracking_confidence']
        )
    )

    models_data = data['models']
    models = ModelsConfig(
        static_model=_resolve(base_dir, models_data['static_model']),
        dynamic_model=_resolve(base_dir, models_data['dynamic_model']),
        static_labels=_resolve(base_dir, models_data['static_labels']),
        dynamic_labels=_resolve(base_dir, models_data['dynamic_labels'])
    )

    stabilizer = StabilizerConfig(
        buffer_size=data['stabilizer']['buffer_size'],
        confidence_threshold=data['stabilizer']['confidence_threshold']
    )

    window = WindowConfig(sequence_length=data['window']['sequence_length'])

    sentence_data = data['sentence']
    sentence = SentenceConfig(
        no_hand_threshold=sentence_data['no_hand_threshold'],
        gap_marker=sentence_data['gap_marker'],
        # YAML may hand back non-string keys (e.g. 2), labels are always strings
        display_aliases={
            str(k): str(v) for k, v in (sentence_data.get('display_aliases') or {}).items()
        }
    )

    practice = PracticeConfig(
        low_confidence_floor=data['practice']['low_confidence_floor'],
        inference_timeout_s=data['practice']['inference_timeout_s']
    )

    display_data = data['display']
    display = DisplayConfig(
        show_landmarks=display_data['show_landmarks'],
        mirror=display_data['mirror'],
        window_name=display_data['window_name']
    )

    logging_cfg = LoggingConfig(level=data.get('logging', {}).get('level', 'INFO'))

    return Cfg(
        camera=camera,
        detectors=detectors,
        models=models,
        stabilizer=stabilizer,
        window=window,
        sentence=sentence,
        practice=practice,
        display=display,
        logging=logging_cfg
    )
