# Error types raised by bubblevar


class BubbleVarError(Exception):
    """ Base class for all bubblevar errors """


class GraphError(BubbleVarError):
    """ Malformed graph input """


class MissingNodeError(GraphError):
    """ A path references a node without sequence """

    def __init__(self, node: int, path_name: str | None = None) -> None:
        # args are rebuilt as cls(*args) when unpickled from a worker
        super().__init__(node, path_name)
        self.node = node
        self.path_name = path_name

    def __str__(self) -> str:
        if self.path_name is None:
            return f'Node {self.node} is not found in the graph segments'
        return f'Node {self.node} in path {self.path_name} is not found in the graph segments'


class BubbleFileError(BubbleVarError):
    """ Malformed ultrabubble file """


class ReferencePathError(BubbleVarError):
    """ Requested reference path is not in the graph """


class SubPathError(BubbleVarError):
    """ Sub-path can not be compared """
