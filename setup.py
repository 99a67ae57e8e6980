from setuptools import setup, find_packages

setup(
    name='mdx-bundler',
    version='0.1.0',
    py_modules=['mdxb'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.10',
    install_requires=[
        'lark',
        'pydantic>=2.0',
        'python-frontmatter',
        'PyYAML',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'mdxb = mdxb:main',
        ],
    },
)
