from setuptools import setup, find_packages


# Read README for long description
def read_readme():
    try:
        with open("README.md", "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        return "Finite and pushdown automata for chat message pattern analysis"


setup(
    name="chat-automata",
    version="0.1.0",
    description="Finite and pushdown automata for chat message pattern analysis",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["chat_automata", "chat_automata.*"]),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "pandas>=1.0.0",
        "numpy>=1.18.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "hypothesis",
            "black",
            "flake8",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Text Processing :: Linguistic",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="automata, nfa, dfa, pda, regex, chat moderation, fuzzy matching",
)
