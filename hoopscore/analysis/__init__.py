"""Scoring analysis pipeline."""

from hoopscore.analysis.analyzer import GameAnalyzer
from hoopscore.analysis.attribution import (
    ExternalProcessClassifier,
    JerseyColorClassifier,
    TeamAttributor,
    TeamClassifier,
)
from hoopscore.analysis.ball_detector import BallProximityDetector
from hoopscore.analysis.ledger import Rejection, ScoreLedger
from hoopscore.analysis.regions import RegionCalibrator
from hoopscore.analysis.scoring import AnalysisState, ScoringStateMachine, ScoringWindow

__all__ = [
    "AnalysisState",
    "BallProximityDetector",
    "ExternalProcessClassifier",
    "GameAnalyzer",
    "JerseyColorClassifier",
    "Rejection",
    "RegionCalibrator",
    "ScoreLedger",
    "ScoringStateMachine",
    "ScoringWindow",
    "TeamAttributor",
    "TeamClassifier",
]
