from setuptools import setup, find_packages

setup(
	name="meshtrace",
	version="0.1.0",
	description="Process-wide tracer setup for Zipkin, Jaeger and log span reporting",
	author="meshtrace authors",
	packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
	install_requires=[
		"opentelemetry-api>=1.25",
		"opentelemetry-sdk>=1.25",
		"opentelemetry-exporter-zipkin-json>=1.25",
		"opentelemetry-exporter-otlp-proto-http>=1.25",
		"opentelemetry-propagator-b3>=1.25",
		"requests>=2.32",
		"typer>=0.12",
	],
	extras_require={
		"test": [
			"pytest>=8",
		],
	},
	python_requires=">=3.10"
)
