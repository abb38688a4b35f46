"""
Question Import Module

Turns uploaded question banks (CSV, Excel, PDF, Word) into validated exam
questions that can be reviewed, corrected and committed in one batch.

Components:
- types.py: Type definitions, data classes and exceptions
- text_normalizer.py: BOM stripping and header normalization
- header_resolver.py: Column classification (bilingual groups, aliases)
- answer_parser.py: Correct-answer resolution (letter, numeral, option text)
- row_processor.py: Single record normalization and diagnosis
- batch.py: Per-batch iteration with row isolation
- revalidator.py: Re-validation of rows edited in the preview
- sanitizer.py: Persistence-ready records
- file_parser.py: File type detection, tabular parsing, document text
- extraction.py: Question extraction from document text
- session.py: Editable preview of one import
- processor.py: Main orchestrator that coordinates all components
"""

from .types import (
    AnswerResolution,
    BatchResult,
    BatchSummary,
    CommitError,
    ExtractionError,
    FieldMapping,
    FileParseError,
    HeaderMapping,
    HeaderValidation,
    HeaderValidationError,
    NormalizedQuestion,
    NothingToCommitError,
    QuestionImportError,
    RowError,
    SessionCommittedError,
    MalformedRecord,
    TabularParseResult,
    UnsupportedFileTypeError,
)
from .text_normalizer import TextNormalizer
from .header_resolver import HeaderResolver
from .answer_parser import AnswerParser
from .row_processor import RowProcessor
from .batch import BatchPipeline
from .revalidator import PreviewRevalidator
from .sanitizer import sanitize_for_db
from .file_parser import FileParser, detect_file_type
from .extraction import HeuristicQuestionExtractor, OpenAIQuestionExtractor, get_question_extractor
from .session import ImportSession
from .processor import QuestionImportProcessor

# Global service instance shared by the API routes
question_import_service = QuestionImportProcessor()

__all__ = [
    # Main classes
    'QuestionImportProcessor',
    'ImportSession',

    # Type definitions
    'AnswerResolution',
    'BatchResult',
    'BatchSummary',
    'FieldMapping',
    'HeaderMapping',
    'HeaderValidation',
    'NormalizedQuestion',
    'RowError',
    'MalformedRecord',
    'TabularParseResult',

    # Exceptions
    'QuestionImportError',
    'UnsupportedFileTypeError',
    'FileParseError',
    'ExtractionError',
    'HeaderValidationError',
    'NothingToCommitError',
    'SessionCommittedError',
    'CommitError',

    # Component classes
    'TextNormalizer',
    'HeaderResolver',
    'AnswerParser',
    'RowProcessor',
    'BatchPipeline',
    'PreviewRevalidator',
    'FileParser',
    'HeuristicQuestionExtractor',
    'OpenAIQuestionExtractor',
    'sanitize_for_db',
    'detect_file_type',
    'get_question_extractor',

    # Global instance
    'question_import_service'
]
