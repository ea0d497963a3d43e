"""Interfaces/abstracciones del Core.

Define contratos (Protocol) que implementan los adaptadores concretos; el
orquestador depende solo de estas abstracciones.
"""

from core.interfaces.assessment import AssessmentService, ProgressReporter, ResultCache

__all__ = ["AssessmentService", "ProgressReporter", "ResultCache"]
