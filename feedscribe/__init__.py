"""
FeedScribe - summarize batches of feed entries with a local Ollama model.

Subpackages:
    sources        FeedEntry model and JSON export loader
    selection      SelectionStore (marks)
    extraction     HTML-to-text extraction
    ai             Ollama request client
    parallel       Execution strategies and the thread-safe progress counter
    summarization  BatchOrchestrator (dispatch and completion aggregation)
    report         Report sink, formatter and presenter
"""

__version__ = "0.1.0"
