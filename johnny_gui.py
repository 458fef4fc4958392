# johnny_gui.py - dark themed JohnnyScript editor and compiler

import re
import sys

from PyQt5.QtWidgets import QApplication, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QTextEdit, QLabel, QPlainTextEdit, QFileDialog
from PyQt5.QtGui import QFont, QTextCharFormat, QColor, QSyntaxHighlighter

from johnny_assembler import Opcode, LINE_COMMENT_DELIMITER, assemble, format_listing, write_ram

KEYWORD_RE = re.compile(r"\b(" + "|".join(op.name for op in Opcode) + r")\b", re.IGNORECASE)
VARIABLE_RE = re.compile(r"#\w+")
LABEL_RE = re.compile(r"^\s*\w+:")


class Highlighter(QSyntaxHighlighter):
    def __init__(self, parent):
        super().__init__(parent)
        self.keyword_format = QTextCharFormat()
        self.keyword_format.setForeground(QColor("lightgreen"))
        self.keyword_format.setFontWeight(QFont.Bold)
        self.variable_format = QTextCharFormat()
        self.variable_format.setForeground(QColor("orange"))
        self.label_format = QTextCharFormat()
        self.label_format.setForeground(QColor("lightblue"))
        self.comment_format = QTextCharFormat()
        self.comment_format.setForeground(QColor("gray"))

    def highlightBlock(self, text):
        for pattern, fmt in ((KEYWORD_RE, self.keyword_format),
                             (VARIABLE_RE, self.variable_format),
                             (LABEL_RE, self.label_format)):
            for m in pattern.finditer(text):
                self.setFormat(m.start(), m.end() - m.start(), fmt)
        start = text.find(LINE_COMMENT_DELIMITER)
        if start >= 0:
            self.setFormat(start, len(text) - start, self.comment_format)


class AssemblerGUI(QWidget):
    def __init__(self):
        super().__init__()
        self.image = ()
        self.initUI()

    def initUI(self):
        self.setWindowTitle("JohnnyScript Compiler")
        self.setGeometry(100, 100, 1000, 600)
        self.setStyleSheet("""
            QWidget {
                background-color: #2e2e2e;
                color: #f0f0f0;
                font-family: Consolas, monospace;
                font-size: 12px;
            }
            QPlainTextEdit, QTextEdit {
                background-color: #3e3e3e;
                border: 1px solid #555;
            }
            QPushButton {
                background-color: #5a5a5a;
                border: 1px solid #444;
                padding: 5px;
            }
            QPushButton:hover {
                background-color: #6a6a6a;
            }
            QLabel {
                color: #f0f0f0;
            }
        """)

        # Two columns: editor on the left, RAM listing and errors on the right
        main_layout = QHBoxLayout()

        left_layout = QVBoxLayout()
        self.label_code = QLabel("JohnnyScript:")
        left_layout.addWidget(self.label_code)
        self.text_code = QPlainTextEdit()
        self.text_code.setPlaceholderText("Type JohnnyScript here...")
        left_layout.addWidget(self.text_code)
        self.highlighter = Highlighter(self.text_code.document())

        self.button_assemble = QPushButton("Assemble")
        self.button_assemble.clicked.connect(self.assemble_code)
        left_layout.addWidget(self.button_assemble)

        self.load_button = QPushButton("Load source")
        self.load_button.clicked.connect(self.load_code)
        left_layout.addWidget(self.load_button)

        self.save_button = QPushButton("Save source")
        self.save_button.clicked.connect(self.save_code)
        left_layout.addWidget(self.save_button)

        self.save_ram_button = QPushButton("Save RAM")
        self.save_ram_button.clicked.connect(self.save_ram)
        left_layout.addWidget(self.save_ram_button)

        main_layout.addLayout(left_layout, 1)

        right_layout = QVBoxLayout()
        self.label_result = QLabel("RAM:")
        right_layout.addWidget(self.label_result)
        self.text_result = QTextEdit()
        self.text_result.setReadOnly(True)
        right_layout.addWidget(self.text_result, 1)

        self.label_errors = QLabel("Errors:")
        right_layout.addWidget(self.label_errors)
        self.text_errors = QTextEdit()
        self.text_errors.setReadOnly(True)
        right_layout.addWidget(self.text_errors, 1)

        main_layout.addLayout(right_layout, 1)

        self.setLayout(main_layout)

    def assemble_code(self):
        # Clear both panes before every run
        self.text_result.clear()
        self.text_errors.clear()

        image, errors = assemble(self.text_code.toPlainText())
        if image:
            self.image = image
            self.text_result.setPlainText("\n".join(format_listing(image)))
        self.text_errors.setPlainText("\n".join(errors))

    def save_ram(self):
        if not self.image:
            self.text_errors.setPlainText("Error: Nothing assembled yet")
            return
        filename, _ = QFileDialog.getSaveFileName(self, "Save RAM", "", "RAM Files (*.ram);;All Files (*)")
        if filename:
            write_ram(self.image, filename)

    def save_code(self):
        filename, _ = QFileDialog.getSaveFileName(self, "Save source", "", "JohnnyScript Files (*.jns);;All Files (*)")
        if filename:
            with open(filename, "w") as file:
                file.write(self.text_code.toPlainText())

    def load_code(self):
        filename, _ = QFileDialog.getOpenFileName(self, "Load source", "", "JohnnyScript Files (*.jns);;All Files (*)")
        if filename:
            with open(filename, "r") as file:
                self.text_code.setPlainText(file.read())


def main():
    app = QApplication(sys.argv)
    gui = AssemblerGUI()
    gui.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
