"""
Services: answer evaluation, quiz submission, material completion, progress
aggregation and reports.
"""
from .answer_evaluator import Evaluation, evaluate_answer
from .material_completion import MaterialCompletionService
from .progress_aggregator import ProgressAggregator, completion_ratio
from .progress_reports import ProgressReportService
from .submission_processor import QuizSubmissionProcessor, SubmissionStage

__all__ = [
    "Evaluation",
    "evaluate_answer",
    "MaterialCompletionService",
    "ProgressAggregator",
    "completion_ratio",
    "ProgressReportService",
    "QuizSubmissionProcessor",
    "SubmissionStage",
]
