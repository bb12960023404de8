from .labels import router as labels_router, board
from .classify import router as classify_router, get_classifier, classifier_dependency, release_classifier
