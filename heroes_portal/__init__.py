"""Heroes portal - pension administration backend."""
