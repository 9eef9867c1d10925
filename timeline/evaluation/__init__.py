"""Evaluation and simulation modules."""

from .generator import ProjectGenerator
from .evaluator import Evaluator, EvaluationResult

__all__ = ['ProjectGenerator', 'Evaluator', 'EvaluationResult']
