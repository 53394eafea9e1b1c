from io import BytesIO

from pytest import Item, fixture

from rdc.vm import Interpreter


def pytest_assertion_pass(item: Item,
                          lineno: int,
                          orig: str,
                          expl: str) -> None:
    '''
    Log every assertion, in case we later need to audit a run.

    Only called with enable_assertion_pass_hook; use with pytest -rP.
    '''
    print('given', item.name + ':' + str(lineno), str(orig))
    print('actual', item.name + ':' + str(lineno),
          '\n'.join(str(expl).splitlines()[:-2]))


@fixture
def sink() -> BytesIO:
    return BytesIO()


@fixture
def interpreter(sink: BytesIO) -> Interpreter:
    return Interpreter(sink=sink, source=BytesIO(), line_length=70)


@fixture
def dc(interpreter: Interpreter, sink: BytesIO):
    '''
    Run programs on one interpreter, returning everything printed so far.
    '''
    def run(*programs: bytes) -> bytes:
        for program in programs:
            interpreter.execute(program)
        return sink.getvalue()
    return run
