import sys
import os

# Project root on sys.path so tests import the flat top-level modules ('evaluator', 'storage', 'scoring', ...)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# tests/ itself, for shared fakes such as test_evaluator.MockGitHubClient
TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
if TESTS_DIR not in sys.path:
    sys.path.insert(0, TESTS_DIR)
