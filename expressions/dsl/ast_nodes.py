class NumberNode:
    def __init__(self, value): self.value = value

class BooleanNode:
    def __init__(self, value): self.value = value

class VarNode:
    def __init__(self, name, pos=0):
        self.name = name
        self.pos = pos

class ListNode:
    def __init__(self, items): self.items = items

class UnaryOpNode:
    def __init__(self, op, operand):
        self.op = op
        self.operand = operand

class BinaryOpNode:
    def __init__(self, left, op, right):
        self.left = left
        self.op = op
        self.right = right

class FunctionCallNode:
    def __init__(self, name, args, pos=0):
        self.name = name
        self.args = args
        self.pos = pos
