from services.chunk_retriever import ChunkRetriever
from services.completion_tracker import CompletionTracker
from services.finalizer import Finalizer
from services.queue_dispatcher import QueueDispatcher
from services.quiz_service import QuizService
from services.quiz_worker import QuizWorker

__all__ = [
    'ChunkRetriever',
    'CompletionTracker',
    'Finalizer',
    'QueueDispatcher',
    'QuizService',
    'QuizWorker'
]
