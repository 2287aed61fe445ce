from __future__ import annotations

from io import BytesIO

from docx import Document

from private_reader.schemas import LearningIndex, LearningModule, TechnicalAnalysis

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def format_learning_index(index: LearningIndex) -> str:
    content = f"{index.main_topic}\n{index.topic_summary}\n\n"
    content += "Learning Modules:\n\n"
    for position, module in enumerate(index.learning_modules, start=1):
        content += f"{position}. {module.title}\n"
        content += f"   {module.description}\n"
        content += f"   Difficulty: {module.difficulty.value}\n\n"
    return content


def format_module(module: LearningModule) -> str:
    return f"{module.title}\n{module.description}"


def format_technical_analysis(analysis: TechnicalAnalysis) -> str:
    data = analysis.response_structure
    content = "TECHNICAL ANALYSIS\n\n"

    content += "TECHNICAL EXPLANATION\n"
    content += data.section_A_technical_explanation.content + "\n\n"

    content += "NARRATIVE EXPLANATION\n"
    content += data.section_B_narrative_explanation.content + "\n\n"

    content += "IMPLEMENTATION GUIDE\n"
    for step in data.section_C_implementation_guide.steps:
        content += f"{step.step_number}. {step.action_title}\n"
        content += f"Why: {step.why}\n"
        content += f"How: {step.how}\n\n"

    content += "QUOTE MINING\n"
    for idx, quote in enumerate(data.section_D_quote_mining.quotes, start=1):
        content += f'Quote {idx}: "{quote.quote_text}"\n'
        content += f"Editor's Note: {quote.editors_note}\n\n"

    content += "BLIND SPOTS & CONTRADICTIONS\n"
    content += data.section_E_blind_spots.content
    return content


def learning_index_docx(index: LearningIndex) -> BytesIO:
    doc = Document()
    doc.add_heading(index.main_topic, level=1)
    doc.add_paragraph(index.topic_summary)

    doc.add_heading("Learning Modules", level=2)
    for position, module in enumerate(index.learning_modules, start=1):
        doc.add_heading(f"{position}. {module.title}", level=3)
        doc.add_paragraph(module.description)
        doc.add_paragraph(f"Difficulty: {module.difficulty.value}")
        for resource in module.resources or []:
            p = doc.add_paragraph(style="List Bullet")
            p.add_run(resource.title).bold = True
            p.add_run(f" - {resource.url}")
            if resource.content:
                p.add_run(f"\n{resource.content}")

    bio = BytesIO()
    doc.save(bio)
    bio.seek(0)
    return bio
