"""
Format adapters.

Readers build the document model from a source file; writers serialize the
model. text_adapter, markdown_adapter, odt_adapter and rtf_adapter read;
text_adapter and docx_adapter write; docx_adapter also exposes an in-place
paragraph view used by the style rewriter.
"""
