# bubblevar: call variants from pangenome graph paths within bubbles

__version__ = '0.4.0'
