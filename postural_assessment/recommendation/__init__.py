from postural_assessment.recommendation.builder import synthesize
from postural_assessment.recommendation.exercises import build_exercise_protocol

__all__ = ["synthesize", "build_exercise_protocol"]
