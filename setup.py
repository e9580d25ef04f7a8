from setuptools import setup, find_packages

setup(
    name='rcf-anomaly',
    version='0.1',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'boto3 >= 1.26',
        'numpy >= 1.22.4',
        'pydantic >= 2.6',
        'pydantic-settings >= 2.0',
    ],
    test_suite='tests',
    description='Lambda handlers that detect anomalies in CloudWatch metrics with SageMaker Random Cut Forest.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires=">=3.10",
)
