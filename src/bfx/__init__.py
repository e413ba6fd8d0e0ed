from .api import RunResult, build, build_file, new_session, run_string
from .debugger import DebugMode, Observation, Session, SessionOptions
from .engine import Engine, Failed, Halted, PausedAtBreakpoint, PausedForStep, Running
from .errors import BFXBuildError, BFXError, BFXRuntimeError, ErrorKind
from .lexer import tokenize
from .macros import expand, preprocess
from .program import Program, build_program

__all__ = [
    'build',
    'build_file',
    'new_session',
    'run_string',
    'RunResult',
    'Session',
    'SessionOptions',
    'DebugMode',
    'Observation',
    'Engine',
    'Running',
    'Halted',
    'PausedAtBreakpoint',
    'PausedForStep',
    'Failed',
    'ErrorKind',
    'BFXError',
    'BFXBuildError',
    'BFXRuntimeError',
    'tokenize',
    'expand',
    'preprocess',
    'Program',
    'build_program',
]
